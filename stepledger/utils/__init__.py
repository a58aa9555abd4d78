"""Shared helpers: calendar dates, auth gate, listener registries"""
