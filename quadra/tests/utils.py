'''
This contains the core test helper code used in quadra.

The core class, quadra.tests.utils.QuadTest is a subclass of unittest.TestCase,
with several wrapper functions to allow for easier calls to assert* functions,
with less typing.  There are also quadra specific helpers to bind an in-memory
store and a set of test resource classes.

Since QuadTest is built from unittest.TestCase, the use of QuadTest is
compatible with the unittest and pytest frameworks.
'''
import io
import os
import json
import shutil
import logging
import tempfile
import unittest
import threading
import contextlib

import quadra.glob as q_glob
import quadra.common as q_common

import quadra.lib.cache as q_cache
import quadra.lib.store as q_store
import quadra.lib.naming as q_naming
import quadra.lib.resource as q_resource

logger = logging.getLogger(__name__)

def norm(z):
    if isinstance(z, (list, tuple)):
        return tuple([norm(n) for n in z])
    if isinstance(z, dict):
        return {norm(k): norm(v) for (k, v) in z.items()}
    return z

def jsonlines(text):
    lines = [k for k in text.split('\n') if k]
    return [json.loads(line) for line in lines]

def _subUri(coll, name):
    # predicates of submissions are scoped beneath their ontology
    if coll is None:
        return f'http://quadra.local/submission/{name}'
    base = getattr(coll, 'id', coll)
    return f'{base}/{name}'

class Org(q_resource.Resource):
    modeldef = {
        'name': 'org',
        'namewith': 'name',
        'attrs': (
            ('name', ('str', {}), {'enforce': ('existence',)}),
            ('site', ('uri', {}), {'enforce': ('uri',)}),
            ('founded', ('time', {}), {}),
        ),
    }

class Person(q_resource.Resource):
    modeldef = {
        'name': 'person',
        'namewith': 'name',
        'attrs': (
            ('name', ('str', {}), {'enforce': ('existence',)}),
            ('email', ('str', {}), {'list': True, 'enforce': ('email',)}),
            ('age', ('int', {'min': 0}), {}),
            ('handle', ('str', {'lower': True}), {'enforce': ('unique',)}),
            ('friends', ('ref', {}), {'list': True, 'range': 'person'}),
            ('employer', ('ref', {}), {'range': 'org'}),
            ('label', ('str', {}), {'handler': lambda pers: f'person: {pers.peek("name")}'}),
        ),
    }

class Note(q_resource.Resource):
    modeldef = {
        'name': 'note',
        'namewith': 'id',
        'attrs': (
            ('text', ('str', {}), {'enforce': ('existence',)}),
            ('title', ('literal', {}), {}),
            ('keywords', ('str', {}), {'list': True}),
            ('parts', ('ref', {}), {'list': True}),
        ),
        'equivalents': {
            'http://quadra.local/text': ['http://purl.org/dc/terms/description'],
        },
    }

class Tag(q_resource.Resource):
    modeldef = {
        'name': 'tag',
        'namewith': q_naming.guidNamer('label'),
        'attrs': (
            ('label', ('str', {'strip': True}), {}),
        ),
    }

class Submission(q_resource.Resource):
    modeldef = {
        'name': 'submission',
        'namewith': 'acronym',
        'collection': 'ontology',
        'attrs': (
            ('acronym', ('str', {}), {'enforce': ('existence',)}),
            ('ontology', ('ref', {}), {'range': 'org', 'enforce': ('existence',)}),
            ('version', ('int', {}), {'uri': lambda coll: _subUri(coll, 'version')}),
        ),
    }

class Status(q_resource.Enum):
    modeldef = {
        'name': 'status',
        'namewith': 'code',
        'immutable': True,
        'enum': ('ready', 'done'),
        'attrs': (
            ('code', ('str', {}), {'enforce': ('existence',)}),
            ('description', ('str', {}), {}),
        ),
    }

class StreamEvent(io.StringIO, threading.Event):
    '''
    A combination of a io.StringIO object and a threading.Event object.
    '''
    def __init__(self, *args, **kwargs):
        io.StringIO.__init__(self, *args, **kwargs)
        threading.Event.__init__(self)
        self.mesg = ''

    def setMesg(self, mesg):
        '''
        Clear the internal event and set a new message that is used to set the event.
        '''
        self.mesg = mesg
        self.clear()

    def write(self, s):
        io.StringIO.write(self, s)
        if self.mesg and self.mesg in s:
            self.set()

    def jsonlines(self):
        return jsonlines(self.getvalue())

class QuadTest(unittest.TestCase):

    @contextlib.contextmanager
    def getTestStore(self, opts=None):
        '''
        Bind a fresh in-memory store (and configuration) for the duration of a test.

        Args:
            opts (dict): Optional configuration values.

        Examples:

            with self.getTestStore() as store:
                Person(name='visi').save()
                self.eq(1, len(Person.all()))

        Yields:
            quadra.lib.store.RamStore: The bound store.
        '''
        store = q_store.RamStore()

        prevconf = q_glob.conf
        prevstore = q_glob.setStore(store)

        q_glob.initGlob(opts=opts)
        q_cache.clearInstCaches()

        try:
            yield store

        finally:
            q_glob.setStore(prevstore)
            q_glob.conf = prevconf
            q_cache.clearInstCaches()

    @contextlib.contextmanager
    def getTestDir(self):
        '''
        Get a temporary directory for test purposes.
        This destroys the directory afterwards.
        '''
        tempdir = tempfile.mkdtemp()
        try:
            yield tempdir
        finally:
            shutil.rmtree(tempdir, ignore_errors=True)

    @contextlib.contextmanager
    def getLoggerStream(self, logname, mesg=''):
        '''
        Get a logger and attach a io.StringIO object to the logger to capture log messages.

        Yields:
            StreamEvent: A StreamEvent object
        '''
        stream = StreamEvent()
        stream.setMesg(mesg)
        handler = logging.StreamHandler(stream)
        slogger = logging.getLogger(logname)
        slogger.addHandler(handler)
        level = slogger.level
        slogger.setLevel('DEBUG')
        try:
            yield stream
        finally:
            slogger.removeHandler(handler)
            slogger.setLevel(level)

    @contextlib.contextmanager
    def setTstEnvars(self, **props):
        '''
        Set Environment variables for the purposes of running a specific test.
        '''
        old_data = {}
        for key, valu in props.items():
            old_data[key] = os.environ.get(key)
            os.environ[key] = str(valu)

        try:
            yield None

        finally:
            for key, valu in old_data.items():
                if valu is None:
                    os.environ.pop(key, None)
                else:
                    os.environ[key] = valu

    def eq(self, x, y, msg=None):
        '''
        Assert X is equal to Y
        '''
        self.assertEqual(norm(x), norm(y), msg=msg)

    def ne(self, x, y):
        '''
        Assert X is not equal to Y
        '''
        self.assertNotEqual(norm(x), norm(y))

    def true(self, x, msg=None):
        '''
        Assert X is True
        '''
        self.assertTrue(x, msg=msg)

    def false(self, x, msg=None):
        '''
        Assert X is False
        '''
        self.assertFalse(x, msg=msg)

    def nn(self, x, msg=None):
        '''
        Assert X is not None
        '''
        self.assertIsNotNone(x, msg=msg)
        return x

    def none(self, x, msg=None):
        '''
        Assert X is None
        '''
        self.assertIsNone(x, msg=msg)

    def noprop(self, info, prop):
        '''
        Assert a property is not present in a dictionary.
        '''
        valu = info.get(prop, q_common.novalu)
        self.eq(valu, q_common.novalu)

    def raises(self, *args, **kwargs):
        '''
        Assert a function raises an exception.
        '''
        return self.assertRaises(*args, **kwargs)

    def sorteq(self, x, y, msg=None):
        '''
        Assert two sorted sequences are the same.
        '''
        return self.eq(sorted(x), sorted(y), msg=msg)

    def isinstance(self, obj, cls, msg=None):
        '''
        Assert a object is the instance of a given class or tuple of classes.
        '''
        self.assertIsInstance(obj, cls, msg=msg)

    def isin(self, member, container, msg=None):
        '''
        Assert a member is inside of a container.
        '''
        self.assertIn(member, container, msg=msg)

    def notin(self, member, container, msg=None):
        '''
        Assert a member is not inside of a container.
        '''
        self.assertNotIn(member, container, msg=msg)

    def gt(self, x, y, msg=None):
        '''
        Assert that X is greater than Y
        '''
        self.assertGreater(x, y, msg=msg)

    def len(self, x, obj, msg=None):
        '''
        Assert that the length of an object is equal to X
        '''
        self.assertEqual(x, len(obj), msg=msg)
