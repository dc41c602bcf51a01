"""Core building blocks of realmpy."""
