"""Transactional email"""
