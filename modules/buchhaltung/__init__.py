"""Buchhaltung - Umsatz-Statistiken und Export"""
