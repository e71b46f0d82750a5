"""Address locator: resolve free-form address fragments to coordinates."""
