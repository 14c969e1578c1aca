"""Synthetic test fixtures"""
