"""Dispute Engine - Services"""
