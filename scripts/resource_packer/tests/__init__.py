"""
Tests for the resource packer.
"""
