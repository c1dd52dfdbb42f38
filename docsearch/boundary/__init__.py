"""Boundary adapters: relational store, job queue and model service."""
