'''
An API to declare resource classes and resolve their attributes to graph predicates.
'''
import logging
import threading

import quadra.exc as q_exc
import quadra.glob as q_glob

import quadra.lib.types as q_types
import quadra.lib.terms as q_terms

logger = logging.getLogger(__name__)

# error key used when the identity is derived by a custom function
PROC_NAMING = 'proc_naming'

class Attr:
    '''
    The Attr class represents an attribute declared by a resource class.
    '''
    def __init__(self, schema, name, typedef, info):

        self.name = name
        self.info = info
        self.schema = schema

        self.full = '%s:%s' % (schema.name, name)

        self.islist = bool(info.get('list', False))
        self.handler = info.get('handler')
        self.iscomputed = self.handler is not None

        self.rules = tuple(info.get('enforce', ()))

        self._range = info.get('range')
        if self._range is not None and typedef[0] != 'ref':
            typedef = ('ref', typedef[1])

        self.typedef = typedef
        self.type = q_types.getType(typedef)

    def __repr__(self):
        return f'Resource Attr: {self.full}'

    def range(self):
        '''
        Return the resource class values of this attribute refer to (or None).
        '''
        if self._range is None:
            return None

        if isinstance(self._range, str):
            return model.reqResource(self._range)

        return self._range

    def predicate(self, collection=None):
        '''
        Return the predicate uri for this attribute.

        Args:
            collection: The collection value used to scope the predicate (if any).
        '''
        uri = self.info.get('uri')
        if callable(uri):
            return q_terms.uri(uri(collection))

        if uri is not None:
            return q_terms.uri(uri)

        return q_terms.join(self.schema.namespace, self.name)

    def getAttrDef(self):
        return (self.name, self.typedef, self.info)

class Schema:
    '''
    The declared contract of a resource class.

    Args:
        klass (type): The resource class.
        mdef (dict): The model definition.

    A model definition looks like::

        modeldef = {
            'name': 'person',
            'namewith': 'name',
            'attrs': (
                ('name', ('str', {}), {'enforce': ('existence',)}),
                ('email', ('str', {}), {'list': True, 'enforce': ('email',)}),
                ('friends', ('ref', {}), {'list': True, 'range': 'person'}),
            ),
        }
    '''
    def __init__(self, klass, mdef):

        name = mdef.get('name')
        if not name:
            raise q_exc.ConfigurationError(mesg=f'{klass.__name__} modeldef requires a name.')

        self.name = name
        self.info = mdef
        self.klass = klass

        self.attrsbyname = {}   # name: Attr() for stored and computed attributes

        for adef in mdef.get('attrs', ()):
            try:
                aname, typedef, info = adef
            except ValueError:
                mesg = f'Invalid attribute definition on {name}: {adef!r}'
                raise q_exc.ConfigurationError(mesg=mesg) from None

            if aname in self.attrsbyname or aname == 'id':
                raise q_exc.ConfigurationError(mesg=f'Duplicate or reserved attribute name: {aname}', name=aname)

            self.attrsbyname[aname] = Attr(self, aname, typedef, info)

        # ordered names of the stored attributes
        self.attrs = tuple(a.name for a in self.attrsbyname.values() if not a.iscomputed)
        self.computed = tuple(a.name for a in self.attrsbyname.values() if a.iscomputed)

        self.namewith = mdef.get('namewith', 'id')
        if isinstance(self.namewith, str) and self.namewith != 'id' and self.namewith not in self.attrs:
            mesg = f'namewith attribute {self.namewith} is not declared on {name}.'
            raise q_exc.ConfigurationError(mesg=mesg, name=name)

        self.collattr = mdef.get('collection')
        self.immutable = bool(mdef.get('immutable', False))
        self.enumvals = tuple(mdef.get('enum', ()))
        self.equivs = mdef.get('equivalents')

    def __repr__(self):
        return f'Resource Schema: {self.name}'

    @property
    def namespace(self):
        nspc = self.info.get('namespace')
        if nspc is None:
            nspc = q_glob.getConf('namespace')
        return nspc

    @property
    def uri(self):
        '''
        The uri of the class. This is also the graph of resources without a collection.
        '''
        uri = self.info.get('uri')
        if uri is not None:
            return q_terms.uri(uri)
        return q_terms.join(self.namespace, self.name)

    def idenattr(self):
        '''
        Return the name errors about the identity of a resource are recorded under.
        '''
        if isinstance(self.namewith, str):
            return self.namewith
        return PROC_NAMING

    def attr(self, name):
        return self.attrsbyname.get(name)

    def reqAttr(self, name):
        attr = self.attrsbyname.get(name)
        if attr is None:
            raise q_exc.NoSuchAttr.init(self.name, name)
        return attr

    def isList(self, name):
        return self.reqAttr(name).islist

    def isComputed(self, name):
        return self.reqAttr(name).iscomputed

    def isCollection(self, name):
        return self.collattr is not None and name == self.collattr

    def range(self, name):
        return self.reqAttr(name).range()

    def type(self, name):
        return self.reqAttr(name).type

    def rules(self, name):
        return self.reqAttr(name).rules

    def predicate(self, name, collection=None):
        return self.reqAttr(name).predicate(collection)

    def getModelDef(self):
        return {
            'name': self.name,
            'namewith': self.namewith,
            'collection': self.collattr,
            'immutable': self.immutable,
            'attrs': [a.getAttrDef() for a in self.attrsbyname.values()],
        }

class Model:
    '''
    The process wide registry of resource classes by model name.
    '''
    def __init__(self):
        self.lock = threading.Lock()
        self.resources = {}

    def addResource(self, klass):

        schema = klass.getSchema()

        with self.lock:
            prev = self.resources.get(schema.name)
            if prev is not None and prev is not klass:
                logger.warning('resource model %s redefined by %s.%s', schema.name, klass.__module__, klass.__qualname__)
            self.resources[schema.name] = klass

    def resource(self, name):
        return self.resources.get(name)

    def reqResource(self, name):
        klass = self.resources.get(name)
        if klass is None:
            raise q_exc.ConfigurationError(mesg=f'No resource model named {name}.', name=name)
        return klass

    def delResource(self, name):
        with self.lock:
            return self.resources.pop(name, None)

model = Model()
