"""Appointment domain - individual scheduled doses"""
