"""
imagesort - Test Suite

Shared fixtures (synthetic images, a fake inference engine, a labels file)
live in tests/conftest.py.
"""
