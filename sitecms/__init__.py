"""SiteCMS backend: admin accounts, sessions and token revocation."""
