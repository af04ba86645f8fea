"""Claim approval engine: rule matching, workflow instantiation and step processing."""
