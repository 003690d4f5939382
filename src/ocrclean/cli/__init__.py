"""
ocrclean CLI module.

Provides the ``ocrclean`` command group and shared CLI utilities.
"""
