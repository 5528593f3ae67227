"""Display client: feed client, transition engine and display session."""
