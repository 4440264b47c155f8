"""LBRY comment notifier: watches claims for new comments and e-mails them."""

__version__ = "0.1.0"
