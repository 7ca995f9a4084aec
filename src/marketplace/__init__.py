"""Freelancer marketplace messaging inbox."""
