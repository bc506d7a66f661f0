"""
Interfaces Layer

External entry points into the application.
"""
