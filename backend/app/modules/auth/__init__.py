# Authentication module: identity, approval, role gate
