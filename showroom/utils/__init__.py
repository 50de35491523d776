"""Configuration, logging and shared helpers"""
