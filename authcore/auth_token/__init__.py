"""Token pair types, token store, refresh client and refresh coordinator."""
