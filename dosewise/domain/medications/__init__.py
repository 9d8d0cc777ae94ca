"""Medication catalogue domain"""
