"""Core domain: errors, task model and startup gate"""
