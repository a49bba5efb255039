"""Textual screen and widgets for the ERP terminal client."""
