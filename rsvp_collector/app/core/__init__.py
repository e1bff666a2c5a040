"""Cross-cutting helpers: configuration, logging, errors and identifiers."""
