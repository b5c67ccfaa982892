"""Tests for Triplet."""
