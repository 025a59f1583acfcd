'''
Build the insert and delete triple sets used to persist resources.
'''
import logging

from rdflib import Literal

import quadra.lib.const as q_const
import quadra.lib.terms as q_terms

logger = logging.getLogger(__name__)

def getAttrTerms(res, name, valu):
    '''
    Convert an attribute value into the list of rdf object terms.

    Language partitioned values ({lang: [valu, ...]}) produce language tagged literals.
    '''
    atyp = res.getSchema().type(name)

    if valu is None:
        return []

    if isinstance(valu, dict):
        retn = []
        for lang, lvals in valu.items():
            for term in getAttrTerms(res, name, lvals):
                if lang != q_const.NOLANG and isinstance(term, Literal) and not term.language:
                    term = Literal(str(term), lang=lang)
                retn.append(term)
        return retn

    if not isinstance(valu, (list, tuple, set)):
        valu = (valu,)

    retn = []
    for item in valu:
        norm, info = atyp.norm(item)
        retn.append(atyp.toTerm(norm))

    return retn

def _getCollection(res):
    schema = res.getSchema()
    if schema.collattr is None:
        return None
    return res.collection()

def getUpdateTriples(res):
    '''
    Compute the triples to insert and delete to save a resource.

    Args:
        res (quadra.lib.resource.Resource): The resource to save.

    Notes:
        A resource which is not yet persistent inserts every attribute which
        has a value along with its class triple. A persistent resource only
        replaces the modified attributes. Previously stored objects are deleted
        exactly when they are known (raw loaded terms or a snapshot of the
        previous value), otherwise every object of the predicate is deleted.

    Returns:
        (list, list): The (inserts, deletes) triple lists. Delete patterns may use None as a wildcard.
    '''
    schema = res.getSchema()
    subj = res.id
    coll = _getCollection(res)

    inserts = []
    deletes = []

    if not res.persistent:
        inserts.append((subj, q_terms.rdftype, schema.uri))
        names = [n for n in schema.attrs if res.peek(n) is not None]
    else:
        names = [n for n in schema.attrs if n in res.modified]

    prevs = res.prevs or {}

    for name in names:

        pred = schema.predicate(name, coll)

        if res.persistent:

            loaded = res.unmappedGet(pred)
            if loaded is not None:
                deletes.extend((subj, pred, o) for o in loaded)

            elif name in prevs:
                deletes.extend((subj, pred, o) for o in getAttrTerms(res, name, prevs.get(name)))

            else:
                deletes.append((subj, pred, None))

        inserts.extend((subj, pred, o) for o in getAttrTerms(res, name, res.peek(name)))

    return inserts, deletes

def getDeleteTriples(res):
    '''
    Compute the triple patterns which remove a resource from its graph.

    Returns:
        (list, dict): The graph delete patterns and a dictionary of attribute
        name to the patterns which remove blank node structures it references.
    '''
    schema = res.getSchema()
    subj = res.id
    coll = _getCollection(res)

    graphdels = [(subj, q_terms.rdftype, schema.uri)]
    bnodedels = {}

    for name in schema.attrs:

        pred = schema.predicate(name, coll)
        graphdels.append((subj, pred, None))

        terms = res.unmappedGet(pred)
        if terms is None:
            terms = getAttrTerms(res, name, res.peek(name))

        for term in terms:
            if q_terms.isbnode(term):
                bnodedels.setdefault(name, []).append((term, None, None))

    return graphdels, bnodedels

def getNquadLines(triples, graph):
    '''
    Yield N-Quads lines for triples in a graph.
    '''
    graph = q_terms.uri(graph)
    for subj, pred, obj in triples:
        yield q_terms.nquad(subj, pred, obj, graph)
