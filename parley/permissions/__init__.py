"""Turning remote program requests into persistent permission rules."""
