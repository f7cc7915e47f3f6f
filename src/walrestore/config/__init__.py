"""Configuracao do walrestore."""
