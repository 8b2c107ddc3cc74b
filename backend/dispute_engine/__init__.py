"""Dispute Engine - credit report analysis and FCRA dispute letters"""
