"""Normalization package.

Canonical forms for the contact details stored on recipients: mailing
addresses, e-mail addresses and phone numbers.  Each normalizer accepts the
value as typed into a form and never raises on bad input.
"""
