'''
Query cursors and the scoped loader which materializes resources from the store.
'''
import logging

import quadra.exc as q_exc
import quadra.glob as q_glob

import quadra.lib.terms as q_terms
import quadra.lib.mapper as q_mapper

logger = logging.getLogger(__name__)

def _getGraph(schema, collection):
    # resources without a collection live in the graph named by their class
    if schema.collattr is None:
        return schema.uri

    if collection is None:
        return None

    if isinstance(collection, (list, tuple)):
        if len(collection) != 1:
            raise q_exc.ConfigurationError(mesg='Query collection must hold exactly one value.',
                                           size=len(collection))
        collection = collection[0]

    if hasattr(collection, 'getSchema'):
        return q_terms.uri(collection.id)

    return q_terms.uri(collection)

def _parseInclude(schema, include):
    '''
    Parse include arguments into (names, nested) where nested maps attribute names to sub-includes.
    '''
    names = []
    nested = {}

    for item in include:

        if item == 'all':
            for name in schema.attrs:
                if name not in names:
                    names.append(name)
            continue

        if isinstance(item, dict):
            for name, subs in item.items():
                if schema.reqAttr(name).range() is None:
                    raise q_exc.BadArg(mesg=f'Nested include requires a range attribute: {name}', name=name)
                if name not in names:
                    names.append(name)
                nested[name] = subs
            continue

        attr = schema.reqAttr(item)
        if attr.iscomputed:
            raise q_exc.IllegalMutation(mesg=f'Unable to load a computed attribute {item}', name=item)

        if item not in names:
            names.append(item)

    return names, nested

def _rangeValus(valu):
    if valu is None:
        return
    if isinstance(valu, dict):
        for lvals in valu.values():
            yield from lvals
        return
    if isinstance(valu, list):
        yield from valu
        return
    yield valu

def loadModels(klass, ids, include=(), models=None, collection=None, equivs=None, langs=False, projection=False):
    '''
    Load resources of a class from the store.

    Args:
        klass (type): The resource class.
        ids (list): The ids to load.
        include (list): Attribute names, 'all' or {name: [subnames]} nested includes.
        models (list): Existing instances to load into (matched by id).
        collection: The collection which scopes the load (if any).
        equivs (dict): Equivalent predicate map passed to the mapper.
        langs (bool): Partition literal values by language.
        projection (bool): Produce Projection records instead of resources.

    Returns:
        list: The loaded instances, in the order of ids. Ids which do not exist are skipped.
    '''
    schema = klass.getSchema()
    store = q_glob.getStore()

    graph = _getGraph(schema, collection)
    names, nested = _parseInclude(schema, include)

    collvalu = collection
    if isinstance(collvalu, (list, tuple)):
        collvalu = collvalu[0]

    bymodel = {}
    if models is not None:
        bymodel = {m.id: m for m in models}

    ids = [q_terms.uri(i) for i in ids]

    preds = [schema.predicate(n, collvalu) for n in names if collvalu is None or not schema.isCollection(n)]

    # equivalent predicates are fetched alongside the declared ones
    if equivs:
        for pred in list(preds):
            for alt in equivs.get(str(pred), ()):
                alt = q_terms.uri(alt)
                if alt not in preds:
                    preds.append(alt)

    rows = store.load(ids, schema.uri, include=preds, graph=graph)

    retn = []
    for iden in ids:

        row = rows.get(iden)
        if row is None:
            continue

        inst = bymodel.get(iden)
        if inst is None:
            if projection:
                inst = q_mapper.Projection(klass, iden)
            else:
                inst = klass.initStub(iden)

        if collvalu is not None and schema.collattr is not None:
            if projection:
                inst.collection = collvalu
            else:
                inst.set(schema.collattr, collvalu, onload=True)

        for pred in preds:
            inst.unmappedPop(pred)
            inst.unmappedSet(pred, row.get(str(pred), ()))

        if names:
            q_mapper.mapAttributes(inst, equivs=equivs, langs=langs, names=names)

        retn.append(inst)

    for name, subs in nested.items():
        _loadNested(retn, schema, name, subs, langs=langs)

    extra = {'class': schema.name, 'graph': graph, 'include': names}
    logger.debug('loaded %d %s resources', len(retn), schema.name, extra={'quadra': extra})
    return retn

def _loadNested(insts, schema, name, subs, langs=False):

    rklass = schema.range(name)

    refs = {}
    for inst in insts:
        valu = inst.get(name)
        for item in _rangeValus(valu):
            if isinstance(item, rklass):
                refs.setdefault(item.id, item)

    if not refs:
        return

    if isinstance(subs, str):
        subs = (subs,)

    loadModels(rklass, list(refs.keys()), include=subs, models=list(refs.values()), langs=langs)

class Where:
    '''
    A lazy, restartable query over the resources of a class.

    Examples:

        Load every person with the name "visi" and their friends' names::

            for pers in Person.where(name='visi').include('name', {'friends': ['name']}):
                print(pers.get('name'))
    '''
    def __init__(self, klass, **match):

        self.klass = klass
        self.schema = klass.getSchema()

        self.match = match

        self._ids = None
        self._models = None
        self._include = []
        self._collection = None
        self._langs = q_glob.getConf('load:langs')
        self._equivs = self.schema.equivs
        self._projection = False

        self._result = None

        for name in match:
            self.schema.reqAttr(name)

    def __repr__(self):
        return f'<Where {self.schema.name} match={self.match!r}>'

    def ids(self, ids):
        self._ids = [q_terms.uri(i) for i in ids]
        return self.reset()

    def models(self, models):
        self._models = list(models)
        return self.reset()

    def include(self, *include):
        self._include.extend(include)
        return self.reset()

    def in_(self, collection):
        self._collection = collection
        return self.reset()

    def langs(self, flag=True):
        self._langs = flag
        return self.reset()

    def equivalents(self, equivs):
        self._equivs = equivs
        return self.reset()

    def projection(self, flag=True):
        self._projection = flag
        return self.reset()

    def cached(self, insts):
        '''
        Use a pre-materialized result without consulting the store.
        '''
        self._result = list(insts)
        return self

    def reset(self):
        self._result = None
        return self

    def _getFilters(self):

        collvalu = self._collection
        if isinstance(collvalu, (list, tuple)):
            collvalu = collvalu[0]

        filts = {}
        for name, valu in self.match.items():
            atyp = self.schema.type(name)
            norm, info = atyp.norm(valu)
            filts[self.schema.predicate(name, collvalu)] = atyp.toTerm(norm)

        return filts

    def _getIds(self, store, graph):

        if self._models is not None:
            return [m.id for m in self._models]

        if self._ids is not None:
            return self._ids

        if self.match:
            return store.match(self.schema.uri, self._getFilters(), graph=graph)

        return store.subjects(self.schema.uri, graph=graph)

    def all(self):
        '''
        Execute the query (once) and return the list of results.
        '''
        if self._result is not None:
            return self._result

        store = q_glob.getStore()
        graph = _getGraph(self.schema, self._collection)

        ids = self._getIds(store, graph)

        self._result = loadModels(self.klass, ids, include=self._include, models=self._models,
                                  collection=self._collection, equivs=self._equivs, langs=self._langs,
                                  projection=self._projection)
        return self._result

    def first(self):
        retn = self.all()
        if not retn:
            return None
        return retn[0]

    def __iter__(self):
        return iter(self.all())

    def __len__(self):
        return len(self.all())
