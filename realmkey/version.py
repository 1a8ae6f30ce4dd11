"""RealmKey Meta information.
   RealmKey derives reproducible private keys and passwords
   from a master password, a realm and an optional encrypted seed.
"""
__title__ = 'realmkey'
__description__ = (
   'Deterministic key and password derivation from a master password, '
   'a realm and an optional encrypted seed.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2024 RealmKey Authors'
__author__ = 'RealmKey Authors'
__author_email__ = 'realmkey@users.noreply.github.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/realmkey/realmkey'
