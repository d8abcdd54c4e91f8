"""HTTP surface: task API app and metrics listener app"""
