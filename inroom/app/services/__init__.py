"""Service layer orchestrating repositories, reporting and notifications."""
