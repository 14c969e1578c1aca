"""Service-level utilities"""
