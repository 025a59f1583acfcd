'''
Map raw predicate data loaded from the store onto declared resource attributes.
'''
import logging

import quadra.exc as q_exc

import quadra.lib.terms as q_terms

logger = logging.getLogger(__name__)

class Projection:
    '''
    A lightweight record of loaded values for a resource class.

    Projections are produced by queries which do not need full resources
    (no state tracking, validation or persistence).
    '''
    def __init__(self, klass, iden):
        self.id = iden
        self.klass = klass
        self.valus = {}
        self.unmapped = None
        self.collection = None

    def __repr__(self):
        return f'<Projection {self.klass.__name__} {self.id}>'

    def __getitem__(self, name):
        return self.valus[name]

    def get(self, name, defv=None):
        return self.valus.get(name, defv)

    def unmappedSet(self, pred, valu):
        if self.unmapped is None:
            self.unmapped = {}

        bucket = self.unmapped.setdefault(str(pred), {})
        for item in valu:
            bucket[item] = True

    def unmappedPop(self, pred):
        if self.unmapped is None:
            return None
        return self.unmapped.pop(str(pred), None)

    def getMapTarget(self):
        return ProjTarget(self)

class MapTarget:
    '''
    The interface the mapper uses to read unmapped data and assign attribute values.
    '''
    def __init__(self, inst):
        self.inst = inst

    def getSchema(self):  # pragma: no cover
        raise NotImplementedError

    def getUnmapped(self):  # pragma: no cover
        raise NotImplementedError

    def getCollection(self):  # pragma: no cover
        raise NotImplementedError

    def hasValu(self, name):  # pragma: no cover
        raise NotImplementedError

    def setValu(self, name, valu):  # pragma: no cover
        raise NotImplementedError

    def getRangeObject(self, name, iden):
        return self.getSchema().klass.rangeObject(name, iden)

class ResourceTarget(MapTarget):
    '''
    Map values onto a Resource. Assignments are recorded as loads.
    '''
    def getSchema(self):
        return self.inst.getSchema()

    def getUnmapped(self):
        return self.inst.getUnmapped()

    def getCollection(self):
        schema = self.inst.getSchema()
        if schema.collattr is None:
            return None
        return self.inst.peek(schema.collattr)

    def hasValu(self, name):
        return name in self.inst.loaded and self.inst.peek(name) is not None

    def setValu(self, name, valu):
        self.inst.set(name, valu, onload=True)

class ProjTarget(MapTarget):
    '''
    Map values onto a Projection record.
    '''
    def getSchema(self):
        return self.inst.klass.getSchema()

    def getUnmapped(self):
        if self.inst.unmapped is None:
            return None
        return {pred: list(bucket) for (pred, bucket) in self.inst.unmapped.items()}

    def getCollection(self):
        return self.inst.collection

    def hasValu(self, name):
        return self.inst.valus.get(name) is not None

    def setValu(self, name, valu):
        self.inst.valus[name] = valu

def _getTerms(unmapped, pred, equivs):

    terms = unmapped.get(str(pred))
    if terms:
        return terms

    if not equivs:
        return None

    alts = equivs.get(str(pred))
    if not alts:
        return None

    retn = []
    for alt in alts:
        for term in unmapped.get(str(alt), ()):
            if term not in retn:
                retn.append(term)

    if not retn:
        return None

    return retn

def _convRange(target, name, valu):
    # uri values of range attributes become placeholder resources
    if not q_terms.isuri(valu):
        return valu
    stub = target.getRangeObject(name, valu)
    if stub is None:
        return valu
    return stub

def mapAttributes(inst, equivs=None, langs=False, names=None):
    '''
    Assign attribute values to an instance from its unmapped predicate data.

    Args:
        inst (Resource|Projection): The instance to map.
        equivs (dict): Optional predicate uri to a list of equivalent predicate uris.
        langs (bool): Partition literal values into a {lang: [valu, ...]} dictionary.
        names (list): Restrict the mapping to these attribute names (default every declared attribute).

    Notes:
        Attributes with no data are assigned an empty list (list attributes)
        or None. Uri values of attributes with a range become placeholder
        resources which are persistent but not loaded. A scalar attribute
        keeps the first value found.

    Raises:
        BadArg: If the instance has no unmapped data.
    '''
    target = inst.getMapTarget()

    unmapped = target.getUnmapped()
    if unmapped is None:
        raise q_exc.BadArg(mesg='mapAttributes only works for instances with unmapped data.')

    schema = target.getSchema()
    collection = target.getCollection()

    if names is None:
        names = schema.attrs

    for name in names:

        if schema.isCollection(name) and target.hasValu(name):
            continue

        attr = schema.reqAttr(name)
        pred = attr.predicate(collection)

        terms = _getTerms(unmapped, pred, equivs)
        if not terms:
            target.setValu(name, [] if attr.islist else None)
            continue

        hasrange = attr.range() is not None

        if langs:
            valu = {}
            for lang, lterms in q_terms.langpart(terms).items():
                lvals = [q_terms.unwrap(t) for t in lterms]
                if hasrange:
                    lvals = [_convRange(target, name, v) for v in lvals]
                valu[lang] = lvals

            target.setValu(name, valu)
            continue

        valus = [q_terms.unwrap(t) for t in terms]
        if hasrange:
            valus = [_convRange(target, name, v) for v in valus]

        if attr.islist:
            target.setValu(name, valus)
            continue

        if len(valus) > 1:
            logger.debug('%s has %d values for scalar attribute %s, keeping the first', schema.name, len(valus), name)

        target.setValu(name, valus[0])
