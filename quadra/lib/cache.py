'''
Cache helpers including the process wide instance cache for immutable resources.
'''
import logging
import functools
import threading

logger = logging.getLogger(__name__)

def memoize(size=16384):
    return functools.lru_cache(maxsize=size)

class InstCache:
    '''
    A cache of every persisted instance of an immutable resource class.

    Readers never block. A rebuild constructs a complete new id to instance
    dictionary and swaps it in under the lock so a reader sees either the
    previous or the new cache.

    Args:
        klass (type): The resource class being cached.
    '''
    def __init__(self, klass):
        self.klass = klass

        self.cache = None
        self.cachelock = threading.Lock()
        self.buildlock = threading.Lock()

    def __len__(self):
        cache = self.cache
        if cache is None:
            return 0
        return len(cache)

    def isLoaded(self):
        return self.cache is not None

    def get(self, iden):
        '''
        Return the cached instance for an id (or None).
        '''
        cache = self.cache
        if cache is None:
            return None
        return cache.get(iden)

    def values(self):
        cache = self.cache
        if cache is None:
            return []
        return list(cache.values())

    def rebuild(self, loader):
        '''
        Replace the cache with the instances returned by the loader callback.

        Args:
            loader (function): A callback which returns every instance of the class.
        '''
        with self.buildlock:

            newc = {inst.id: inst for inst in loader()}

            with self.cachelock:
                self.cache = newc

        logger.debug('rebuilt instance cache for %s (%d instances)', self.klass.__name__, len(newc))

    def reqLoaded(self, loader):
        '''
        Populate the cache on first use.
        '''
        if self.cache is not None:
            return

        with self.buildlock:
            if self.cache is not None:
                return

            newc = {inst.id: inst for inst in loader()}

            with self.cachelock:
                self.cache = newc

    def clear(self):
        with self.cachelock:
            self.cache = None

_caches_lock = threading.Lock()
_caches = {}

def getInstCache(klass):
    '''
    Return the process wide InstCache for a resource class.
    '''
    cache = _caches.get(klass)
    if cache is not None:
        return cache

    with _caches_lock:
        cache = _caches.get(klass)
        if cache is None:
            cache = InstCache(klass)
            _caches[klass] = cache

    return cache

def clearInstCaches():
    '''
    Drop every cached instance (used when the bound store changes).
    '''
    with _caches_lock:
        caches = list(_caches.values())

    for cache in caches:
        cache.clear()

    return len(caches)

def getCacheStats():
    with _caches_lock:
        caches = list(_caches.values())
    return {c.klass.__name__: len(c) for c in caches if c.isLoaded()}
