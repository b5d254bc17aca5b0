# =============================================================================
# provider_directory/cli/__init__.py: CLI Module Overview
# =============================================================================
#
# Command-line entry point for the provider directory. The CLI builds one
# AppContext per invocation and dispatches to a subcommand handler:
#
#   list        filter by category / search term and print providers
#   categories  print the distinct categories of the loaded list
#   export      write the loaded list to CSV
#   refresh     force a fetch, report where the data came from and print
#               the GitHub edit link for the source CSV
#   watch       keep refreshing on the auto-refresh interval
#
# argparse is used for argument parsing; the context is passed explicitly
# to each handler rather than looked up from module globals.
# =============================================================================

"""CLI tools for the provider directory.

- ``python -m provider_directory.cli``: browse, filter, export and refresh
  the directory (see ``provider_directory.cli.directory``).
"""
