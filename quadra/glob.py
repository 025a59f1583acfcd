'''
Process wide state for the mapper: configuration and the bound store client.
'''
import logging
import threading

import quadra.exc as q_exc

import quadra.lib.const as q_const
import quadra.lib.config as q_config

logger = logging.getLogger(__name__)

confdefs = {
    'namespace': {
        'description': 'The base namespace used to build class and attribute uris.',
        'type': 'string',
        'default': q_const.DEFAULT_NAMESPACE,
    },
    'cache:immutable': {
        'description': 'Keep a process wide instance cache for immutable resource classes.',
        'type': 'boolean',
        'default': True,
    },
    'load:langs': {
        'description': 'Partition loaded literal values by language tag by default.',
        'type': 'boolean',
        'default': False,
    },
    'batch:flush': {
        'description': 'Flush the batch output sink after each batched save.',
        'type': 'boolean',
        'default': True,
    },
}

envar_prefixes = ('QUADRA',)

_glob_lock = threading.Lock()
_glob_store = None

conf = None

def initGlob(opts=None, path=None):
    '''
    Initialize the process wide configuration.

    Args:
        opts (dict): Explicit configuration values. These take precedence.
        path (str): An optional YAML file of configuration values.

    Notes:
        Values are resolved from opts, then QUADRA_* environment variables,
        then the YAML file and finally the schema defaults.

    Returns:
        quadra.lib.config.Config: The new configuration.
    '''
    global conf

    newconf = q_config.Config.getConfFromDefs(confdefs, conf=opts, envar_prefixes=envar_prefixes)
    newconf.setConfFromEnvs()

    if path is not None:
        newconf.setConfFromFile(path)

    newconf.reqConfValid()

    conf = newconf
    return conf

def getConf(name):
    if conf is None:
        initGlob()
    return conf.reqConfValu(name)

def setStore(store):
    '''
    Bind the store client used by every resource operation.

    Returns:
        The previously bound store (or None).
    '''
    global _glob_store

    with _glob_lock:
        prev = _glob_store
        _glob_store = store

    logger.debug('bound store client: %r', store)
    return prev

def getStore():
    '''
    Return the bound store client.

    Raises:
        ConfigurationError: If no store client has been bound.
    '''
    store = _glob_store
    if store is None:
        raise q_exc.ConfigurationError(mesg='No store client has been bound. Use quadra.glob.setStore().')
    return store
