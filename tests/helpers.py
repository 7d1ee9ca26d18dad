# tests/helpers.py
def notifications_of(store, uid):
    """Stored notification documents of ``uid``, oldest id first."""
    prefix = f"fans/{uid}/notifications/"
    return [doc for path, doc in sorted(store.docs.items()) if path.startswith(prefix)]
