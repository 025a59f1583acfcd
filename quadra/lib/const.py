import logging

# Logging related constants
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s ' \
             '[%(filename)s:%(funcName)s:%(threadName)s:%(processName)s]'
LOG_LEVEL_CHOICES = {
    'DEBUG': logging.DEBUG,
    'INFO': logging.INFO,
    'WARNING': logging.WARNING,
    'ERROR': logging.ERROR,
    'CRITICAL': logging.CRITICAL,
}
LOG_LEVEL_INVERSE_CHOICES = {v: k for k, v in LOG_LEVEL_CHOICES.items()}

# Reserved constructor options which are never applied as attributes
RESOURCE_OPTIONS = ('initenum', 'batch', 'unmapped')

# Default namespace for class and attribute uris
DEFAULT_NAMESPACE = 'http://quadra.local/'

# Bucket name for language partitioned values which carry no language tag
NOLANG = '@none'
