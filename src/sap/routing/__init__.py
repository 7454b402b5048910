"""Routing: file paths to routes, and the frozen route table.

Routes are derived from file paths at load time and compiled into an
immutable lookup structure when loading finishes.
"""
