"""Command implementations behind the texshelf CLI."""
