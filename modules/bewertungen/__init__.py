"""Bewertungen - Kundenbewertungen"""
