"""Channel signup scheduling bot: slash commands backed by a SQL store."""
