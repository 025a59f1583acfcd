'''
The Resource base class which maps python objects to graph data.

Examples:

    Declare a resource class and persist an instance::

        class Person(Resource):
            modeldef = {
                'name': 'person',
                'namewith': 'name',
                'attrs': (
                    ('name', ('str', {}), {'enforce': ('existence',)}),
                    ('email', ('str', {}), {'list': True, 'enforce': ('email',)}),
                ),
            }

        pers = Person(name='visi', email=['visi@vertex.link'])
        pers.save()

        pers = Person.find('visi').include('email').first()
'''
import logging
import collections

import quadra.exc as q_exc
import quadra.glob as q_glob
import quadra.common as q_common
import quadra.datamodel as q_datamodel

import quadra.lib.cache as q_cache
import quadra.lib.const as q_const
import quadra.lib.query as q_query
import quadra.lib.terms as q_terms
import quadra.lib.naming as q_naming
import quadra.lib.mapper as q_mapper
import quadra.lib.triples as q_triples
import quadra.lib.validators as q_validators

from rdflib import URIRef

logger = logging.getLogger(__name__)

Aggregate = collections.namedtuple('Aggregate', ('attr', 'aggr', 'valu'))

def _copyValu(valu):
    # list and language dict containers are copied, the items are shared
    if isinstance(valu, list):
        return list(valu)
    if isinstance(valu, dict):
        return {lang: _copyValu(lvals) for (lang, lvals) in valu.items()}
    return valu

class Resource:
    '''
    The base class for objects which are persisted as graph data.

    Subclasses declare a ``modeldef`` dictionary which is parsed into a
    quadra.datamodel.Schema and registered with the model registry.
    '''
    isenum = False

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        mdef = cls.__dict__.get('modeldef')
        if mdef is None:
            return

        cls._schema = q_datamodel.Schema(cls, mdef)
        q_datamodel.model.addResource(cls)

    def __init__(self, **attrs):

        self._id = None
        self._valus = {}

        self.loaded = set()
        self.modified = set()

        self.prevs = None
        self.errors = None
        self.unmapped = None
        self.aggregates = []
        self.persistent = False

        iden = attrs.pop('id', None)

        for name, valu in attrs.items():
            if name in q_const.RESOURCE_OPTIONS:
                continue
            self.set(name, valu)

        if iden is not None:
            self.id = iden

    def __repr__(self):
        return f'<{self.__class__.__name__} id={self._id} persistent={self.persistent}>'

    @classmethod
    def getSchema(cls):
        schema = getattr(cls, '_schema', None)
        if schema is None:
            raise q_exc.ConfigurationError(mesg=f'{cls.__name__} does not declare a modeldef.')
        return schema

    @classmethod
    def initStub(cls, iden):
        '''
        Construct a persistent instance which has nothing loaded.
        '''
        inst = cls()
        inst.id = iden
        inst.persistent = True
        return inst

    @classmethod
    def rangeObject(cls, name, iden):
        '''
        Return a placeholder instance of the range class of an attribute.

        Returns:
            Resource: A persistent but unloaded instance or None if the attribute has no range.
        '''
        rklass = cls.getSchema().range(name)
        if rklass is None:
            return None
        return rklass.initStub(iden)

    @property
    def id(self):
        '''
        The identifier of the resource. It is generated on first access when not assigned.
        '''
        if self._id is None:
            self._id = q_naming.genid(self)
        return self._id

    @id.setter
    def id(self, valu):
        if self._id is not None and self.persistent:
            raise q_exc.IllegalMutation(mesg='The id of a persistent object cannot be changed.', iden=str(self._id))
        self._id = q_terms.uri(valu)

    def getIden(self):
        '''
        Return the id if it has been assigned or generated (without generating it).
        '''
        return self._id

    def peek(self, name):
        '''
        Return the in-memory value of an attribute without load checks.
        '''
        return self._valus.get(name)

    def get(self, name):
        '''
        Return the value of an attribute.

        Raises:
            NoSuchAttr: If the attribute is not declared.
            AttrNotLoaded: If the resource is persistent and the attribute was not loaded or set.
        '''
        attr = self.getSchema().reqAttr(name)
        if attr.iscomputed:
            return attr.handler(self)

        if self.persistent and name not in self.loaded and name not in self.modified:
            raise q_exc.AttrNotLoaded(mesg=f'Attribute {name} is not loaded.', name=name, iden=str(self._id))

        return self._valus.get(name)

    def set(self, name, valu, onload=False):
        '''
        Set the value of an attribute.

        Args:
            name (str): The attribute name.
            valu (obj): The value.
            onload (bool): The value came from the store rather than the caller.
        '''
        attr = self.getSchema().reqAttr(name)
        if attr.iscomputed:
            raise q_exc.IllegalMutation(mesg=f'Attribute {name} is computed and cannot be set.', name=name)

        if isinstance(valu, (tuple, set)):
            valu = list(valu)

        if onload:
            self._valus[name] = valu
            self.loaded.add(name)
            self.modified.discard(name)
            return

        # snapshot the stored value on the first change
        if self.persistent and name in self.loaded and name not in self.modified:
            if self.prevs is None:
                self.prevs = {}
            self.prevs[name] = _copyValu(self._valus.get(name))

        self._valus[name] = valu
        self.modified.add(name)

    def isModified(self):
        return bool(self.modified)

    def isFullyLoaded(self):
        return all(name in self.loaded for name in self.getSchema().attrs)

    def missingLoadAttrs(self):
        return [name for name in self.getSchema().attrs if name not in self.loaded]

    def canBring(self, name):
        '''
        Return True if the resource is persistent and the stored attribute is neither loaded nor locally modified.
        '''
        attr = self.getSchema().reqAttr(name)
        if attr.iscomputed or not self.persistent:
            return False
        return name not in self.loaded and name not in self.modified

    def bring(self, *names):
        '''
        Load attributes of a persistent resource from the store.

        Args:
            *names: Attribute names or {name: [subnames]} nested includes.

        Returns:
            Resource: The resource.
        '''
        schema = self.getSchema()

        flat = []
        for item in names:
            if isinstance(item, dict):
                flat.extend(item.keys())
                continue
            flat.append(item)

        for name in flat:
            if schema.reqAttr(name).iscomputed:
                raise q_exc.IllegalMutation(mesg=f'Unable to bring a computed attribute {name}', name=name)

        if not flat:
            return self

        where = q_query.Where(type(self)).models([self]).include(*names)
        if schema.collattr is not None:
            where.in_(self.collection())

        for name in flat:
            self._valus.pop(name, None)
            self.loaded.discard(name)
            self.modified.discard(name)
            if self.prevs is not None:
                self.prevs.pop(name, None)

        where.all()
        return self

    def bringRemaining(self):
        '''
        Load every stored attribute which is not yet loaded or modified.
        '''
        names = [n for n in self.getSchema().attrs if self.canBring(n)]
        return self.bring(*names)

    def collection(self):
        '''
        Return the collection value scoping this resource (or None if the class has no collection).

        Raises:
            ConfigurationError: If the collection attribute is undeclared or unset.
        '''
        schema = self.getSchema()
        if schema.collattr is None:
            return None

        if schema.collattr not in schema.attrs:
            raise q_exc.ConfigurationError(mesg=f'Collection `{schema.collattr}` is not an attribute.',
                                           name=schema.collattr)

        valu = self._valus.get(schema.collattr)
        if valu is None:
            raise q_exc.ConfigurationError(mesg=f'Collection `{schema.collattr}` is nil.', name=schema.collattr)

        return valu

    def graph(self):
        '''
        Return the named graph this resource is stored in.
        '''
        schema = self.getSchema()
        if schema.collattr is None:
            return schema.uri

        coll = self.collection()
        if isinstance(coll, list):
            if len(coll) != 1:
                raise q_exc.ConfigurationError(mesg='collection in save only can be len=1', size=len(coll))
            coll = coll[0]

        if isinstance(coll, Resource):
            return q_terms.uri(coll.id)

        return q_terms.uri(coll)

    def _probeExists(self):
        '''
        Probe the store for the identity this resource would be saved as.

        Returns:
            ((bool, obj)): A retn tuple of (exists, iden) or the id generation / configuration error.
        '''
        schema = self.getSchema()
        try:

            # an id which was already generated is the one save will write
            iden = self._id
            if iden is None and schema.namewith != 'id':
                iden = q_naming.genid(self)

            if iden is None:
                return q_common.retn((False, None))

            exists = q_glob.getStore().exists(schema.uri, iden, graph=self.graph())
            return q_common.retn((exists, iden))

        except (q_exc.IDGenerationFailure, q_exc.ConfigurationError) as e:
            return q_common.retnexc(e)

    def exists(self, fromvalid=False):
        '''
        Return True if the identity of this resource is present in the store.

        Args:
            fromvalid (bool): Return the raw retn tuple rather than raising on configuration errors.
        '''
        retn = self._probeExists()
        if fromvalid:
            return retn

        ok, valu = retn
        if ok:
            return valu[0]

        # an identity which cannot be derived does not exist yet
        if valu[0] == 'IDGenerationFailure':
            return False

        return q_common.result(retn)

    def validate(self):
        '''
        Run every validation rule and record failures in the errors dictionary.

        Returns:
            bool: True if the resource is valid.
        '''
        schema = self.getSchema()

        errors = {}
        for name in schema.attrs:

            # stored values which were never loaded are not known here
            if self.persistent and name not in self.loaded and name not in self.modified:
                continue

            errs = q_validators.enforce(self, name, self._valus.get(name))
            if errs:
                errors[name] = errs

        if not self.persistent:

            idenattr = schema.idenattr()

            if schema.namewith == 'id' and self._id is None:
                errors.setdefault('id', {})['existence'] = 'id must be set if configured in namewith'

            elif errors.get(idenattr) is None:

                ok, valu = self._probeExists()
                if ok:
                    exists, iden = valu
                    if exists:
                        errors.setdefault(idenattr, {})['duplicate'] = f'There is already a persistent resource with id `{iden}`'
                else:
                    errname, info = valu
                    errors.setdefault(idenattr, {})['existence'] = info.get('mesg', errname)

        self.errors = errors
        if errors:
            extra = {'class': schema.name, 'iden': self._id, 'errors': list(errors)}
            logger.debug('%s failed validation', self.__class__.__name__, extra={'quadra': extra})

        return not errors

    def save(self, batch=None, initenum=False):
        '''
        Persist the resource.

        Args:
            batch (file): Write N-Quads to this file object rather than the store.
                Batched saves skip validation and never delete.
            initenum (bool): Allow saving an Enum instance.

        Returns:
            Resource: The resource.

        Raises:
            IllegalMutation: If the resource is an Enum and initenum is False.
            ValidationFailure: If validation fails.
        '''
        if self.isenum and not initenum:
            raise q_exc.IllegalMutation(mesg='Enums can only be created on initialization.')

        schema = self.getSchema()

        if batch is None:

            if not self.isModified():
                return self

            if not self.validate():
                raise q_exc.ValidationFailure(mesg='Object is not valid. Check errors.', errors=self.errors,
                                              iden=str(self._id))

        inserts, deletes = q_triples.getUpdateTriples(self)
        graph = self.graph()

        if batch is None:
            store = q_glob.getStore()
            if deletes:
                store.delete(deletes, graph)
            if inserts:
                store.insert(inserts, graph)
        else:
            batch.write(''.join(q_triples.getNquadLines(inserts, graph)))
            if q_glob.getConf('batch:flush'):
                batch.flush()

        self._syncUnmapped(inserts)

        self.loaded.update(schema.attrs)
        self.modified.clear()
        self.prevs = None
        self.persistent = True

        extra = {'class': schema.name, 'iden': self._id, 'graph': graph, 'batch': batch is not None}
        logger.debug('saved %s', self._id, extra={'quadra': extra})

        self._rebuildInstCache()
        return self

    def _syncUnmapped(self, inserts):
        # keep raw loaded terms in step with what was written
        if self.unmapped is None:
            return

        schema = self.getSchema()
        coll = self._valus.get(schema.collattr) if schema.collattr else None
        for name in self.modified:
            self.unmappedPop(schema.predicate(name, coll))

        for subj, pred, obj in inserts:
            if pred == q_terms.rdftype:
                continue
            self.unmappedSet(pred, obj)

    def delete(self, initenum=False):
        '''
        Remove the resource (and the blank node structures it references) from the store.

        Raises:
            IllegalMutation: If the resource is an Enum and initenum is False or it is not persistent.
        '''
        if self.isenum and not initenum:
            raise q_exc.IllegalMutation(mesg='Enums can only be deleted on initialization.')

        if not self.persistent:
            raise q_exc.IllegalMutation(mesg='This object is not persistent and cannot be deleted.')

        schema = self.getSchema()

        if not self.isFullyLoaded():
            missing = self.missingLoadAttrs()
            where = q_query.Where(type(self)).models([self]).include(*missing)
            if schema.collattr is not None:
                where.in_(self.collection())
            where.all()

        graphdels, bnodedels = q_triples.getDeleteTriples(self)
        graph = self.graph()

        store = q_glob.getStore()
        for name, patterns in bnodedels.items():
            store.delete(patterns, graph)

        store.delete(graphdels, graph)

        self.persistent = False

        logger.debug('deleted %s', self._id, extra={'quadra': {'class': schema.name, 'iden': self._id, 'graph': graph}})

        self._rebuildInstCache()
        return None

    def _rebuildInstCache(self):
        if not type(self).isInstCached():
            return
        type(self).loadImmutableInstances()

    def unmappedSet(self, pred, valu):
        '''
        Add raw object terms for a predicate. Values are kept as an ordered set.
        '''
        if self.unmapped is None:
            self.unmapped = {}

        bucket = self.unmapped.setdefault(str(pred), {})
        if valu is None:
            return

        if not isinstance(valu, (list, tuple, set)):
            valu = (valu,)

        for item in valu:
            bucket[item] = True

    def unmappedGet(self, pred):
        if self.unmapped is None:
            return None

        bucket = self.unmapped.get(str(pred))
        if bucket is None:
            return None

        return list(bucket)

    def unmappedPop(self, pred):
        if self.unmapped is None:
            return None

        bucket = self.unmapped.pop(str(pred), None)
        if bucket is None:
            return None

        return list(bucket)

    def getUnmapped(self, langs=False):
        '''
        Return the raw predicate data of the resource.

        Args:
            langs (bool): Partition the terms of each predicate by language tag.

        Returns:
            dict: A predicate to terms dictionary (or None if nothing was loaded).
        '''
        if self.unmapped is None:
            return None

        if langs:
            return {pred: q_terms.langpart(bucket) for (pred, bucket) in self.unmapped.items()}

        return {pred: list(bucket) for (pred, bucket) in self.unmapped.items()}

    def getMapTarget(self):
        return q_mapper.ResourceTarget(self)

    def addAggregate(self, attr, aggr, valu):
        self.aggregates.append(Aggregate(attr, aggr, valu))

    def pack(self):
        '''
        Return a dictionary of the attribute values, unmapped predicates and id.
        '''
        schema = self.getSchema()

        retn = {}
        for name in schema.attrs:
            valu = self._valus.get(name)
            if valu is not None:
                retn[name] = valu

        if self.unmapped:

            coll = self._valus.get(schema.collattr) if schema.collattr else None
            preds = set(str(schema.predicate(name, coll)) for name in schema.attrs)

            for pred, bucket in self.unmapped.items():
                if pred in preds:
                    continue
                retn[pred] = [str(term) for term in bucket]

        retn['id'] = self._id
        return retn

    @classmethod
    def isInstCached(cls):
        return cls.getSchema().immutable and q_glob.getConf('cache:immutable')

    @classmethod
    def loadImmutableInstances(cls):
        '''
        Rebuild the process wide cache of every instance of an immutable class.
        '''
        cache = q_cache.getInstCache(cls)
        cache.rebuild(cls._loadAllInstances)
        return cache

    @classmethod
    def _loadAllInstances(cls):
        return q_query.Where(cls).include('all').all()

    @classmethod
    def find(cls, iden, **opts):
        '''
        Find a resource by id (or by the value of its identity attribute).

        Args:
            iden (str|URIRef): The id, or the identity attribute value for classes named with an attribute.
            **opts: include=(names), in_=collection, langs=bool, equivalents=dict.

        Returns:
            quadra.lib.query.Where: A query for the resource.
        '''
        schema = cls.getSchema()

        if not isinstance(iden, URIRef):
            if isinstance(schema.namewith, str) and schema.namewith != 'id':
                iden = q_naming.idFromUnique(schema, schema.namewith, iden)
            else:
                iden = q_terms.uri(iden)

        where = q_query.Where(cls).ids([iden])

        if cls.isInstCached():
            cache = q_cache.getInstCache(cls)
            cache.reqLoaded(cls._loadAllInstances)
            inst = cache.get(iden)
            return where.cached([inst] if inst is not None else [])

        include = opts.get('include')
        if include is not None:
            if isinstance(include, str):
                include = (include,)
            where.include(*include)

        collection = opts.get('in_')
        if collection is not None:
            where.in_(collection)

        langs = opts.get('langs')
        if langs is not None:
            where.langs(langs)

        equivs = opts.get('equivalents')
        if equivs is not None:
            where.equivalents(equivs)

        return where

    @classmethod
    def where(cls, **match):
        return q_query.Where(cls, **match)

    @classmethod
    def all(cls):
        return q_query.Where(cls)

    @classmethod
    def in_(cls, collection):
        return q_query.Where(cls).in_(collection)

class Enum(Resource):
    '''
    A resource class with a fixed set of instances declared by the ``enum`` modeldef key.

    Enum instances can only be saved or deleted with the initenum override.
    '''
    isenum = True

    @classmethod
    def initEnum(cls):
        '''
        Create (if needed) every declared enum instance.

        Returns:
            list: The enum instances.
        '''
        schema = cls.getSchema()

        name = schema.namewith
        if not isinstance(name, str) or name == 'id':
            raise q_exc.ConfigurationError(mesg=f'Enum {schema.name} must be named with an attribute.')

        retn = []
        for valu in schema.enumvals:

            inst = cls(**{name: valu})
            if not inst.exists():
                inst.save(initenum=True)
            else:
                inst.persistent = True
                inst.loaded.update(inst.modified)
                inst.modified.clear()

            retn.append(inst)

        return retn
