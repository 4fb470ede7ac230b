"""Click subcommands of the takopack CLI."""
