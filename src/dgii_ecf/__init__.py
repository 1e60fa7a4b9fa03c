"""
dgii_ecf — client for the DGII electronic-invoicing (e-CF) gateway.

Authenticates with the issuer's certificate, signs e-CF and RFCE documents
(XMLDSig, enveloped), submits them, and tracks the authority's disposition
on demand.

Built on the Railway-Oriented Programming (ROP) framework for
explicit, composable, functional error handling.
"""

__version__ = "0.1.0"
