"""Built-in partner backends.

Each module named ``<code>.py`` defines a ``<Code>PartnerBackend`` class
deriving from :class:`tracker.partners.abstract.AbstractPartnerBackend`.
"""
