"""Bestellungen - Bestellannahme, Kalender, Archiv und Benachrichtigungen"""
