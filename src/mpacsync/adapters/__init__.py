"""Translators between collaborator payloads and domain records."""
