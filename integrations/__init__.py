"""
integrations — thin async wrappers around third-party SDKs.

The direct endpoints in ``api.routes`` and the imperative block
operations in ``blocks`` both call these functions, so every Sheets /
Gmail call goes through exactly one code path.
"""
