"""Reservation domain: lifecycle, scheduling, availability and workflow"""
