"""Provider drivers built on :mod:`scmbridge.client`."""
