"""
Travel Blog Modules
===================

Each module is a self-contained feature exposed through a Flask blueprint.
"""
