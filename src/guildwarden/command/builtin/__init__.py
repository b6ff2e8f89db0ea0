"""Built-in commands. Every public module here is registered as a command."""
