"""Parsers that turn raw bytes into metric containers, and a registry of them by name."""