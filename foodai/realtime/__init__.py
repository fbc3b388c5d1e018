"""Realtime reservation changes"""
