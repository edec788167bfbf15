"""Command line interface for installcheck"""
