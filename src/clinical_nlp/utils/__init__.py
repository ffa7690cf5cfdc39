"""Configuration, validation and audit utilities"""
