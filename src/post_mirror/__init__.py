"""Mirror a remote JSON post collection into a local SQLite store."""
