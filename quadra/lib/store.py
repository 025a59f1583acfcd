'''
Graph store clients used to persist and load resources.
'''
import logging
import threading
import collections

import rdflib

import quadra.exc as q_exc

import quadra.lib.terms as q_terms

logger = logging.getLogger(__name__)

class Store:
    '''
    The base class for a quad store client.

    Every method takes an optional named graph. When graph is None, read
    operations span every graph in the store.
    '''
    def exists(self, clsuri, iden, graph=None):  # pragma: no cover
        '''
        Return True if the subject is typed as the class in the graph.
        '''
        raise NotImplementedError

    def load(self, ids, clsuri, include=None, graph=None):  # pragma: no cover
        '''
        Load the triples of several subjects.

        Args:
            ids (list): The subject uris to load.
            clsuri (URIRef): The class the subjects must be typed as.
            include (list): Predicates to return (None for every predicate).
            graph (URIRef): The graph to load from.

        Returns:
            dict: A dictionary of subject to {predicate str: [object terms]}.
            Subjects which do not exist are absent.
        '''
        raise NotImplementedError

    def match(self, clsuri, filters, graph=None):  # pragma: no cover
        '''
        Return the subjects of the class which hold every (predicate, object) in filters.
        '''
        raise NotImplementedError

    def subjects(self, clsuri, graph=None):  # pragma: no cover
        '''
        Return every subject typed as the class.
        '''
        raise NotImplementedError

    def insert(self, triples, graph):  # pragma: no cover
        raise NotImplementedError

    def delete(self, triples, graph):  # pragma: no cover
        '''
        Delete triples from a graph. A None term is a wildcard.
        '''
        raise NotImplementedError

class RamStore(Store):
    '''
    An in memory quad store backed by an rdflib Dataset.
    '''
    def __init__(self):
        self.lock = threading.RLock()
        self.dataset = rdflib.Dataset()
        self.stats = collections.Counter()

    def __repr__(self):
        return f'<RamStore graphs={len(self._getGraphs(None))}>'

    def _getGraph(self, graph):
        return self.dataset.graph(q_terms.uri(graph))

    def _getGraphs(self, graph):
        if graph is None:
            return list(self.dataset.graphs())
        return [self._getGraph(graph)]

    def _isTyped(self, graphs, iden, clsuri):
        return any((iden, q_terms.rdftype, clsuri) in g for g in graphs)

    def exists(self, clsuri, iden, graph=None):
        with self.lock:
            self.stats['exists'] += 1
            try:
                return self._isTyped(self._getGraphs(graph), iden, clsuri)
            except Exception as e:
                raise q_exc.StoreOperationFailure(mesg=f'exists failed: {e}', iden=str(iden)) from e

    def _subjects(self, graphs, clsuri):
        retn = set()
        for g in graphs:
            retn.update(g.subjects(q_terms.rdftype, clsuri))
        return sorted(retn)

    def subjects(self, clsuri, graph=None):
        with self.lock:
            self.stats['subjects'] += 1
            return self._subjects(self._getGraphs(graph), clsuri)

    def match(self, clsuri, filters, graph=None):
        with self.lock:
            self.stats['match'] += 1
            graphs = self._getGraphs(graph)
            retn = []
            for subj in self._subjects(graphs, clsuri):
                if all(any((subj, pred, obj) in g for g in graphs) for pred, obj in filters.items()):
                    retn.append(subj)
            return retn

    def load(self, ids, clsuri, include=None, graph=None):

        if include is not None:
            include = set(q_terms.uri(p) for p in include)

        retn = {}
        with self.lock:
            self.stats['load'] += 1
            try:
                graphs = self._getGraphs(graph)
                for iden in ids:

                    if not self._isTyped(graphs, iden, clsuri):
                        continue

                    row = {}
                    for g in graphs:
                        for subj, pred, obj in g.triples((iden, None, None)):
                            if include is not None and pred not in include:
                                continue
                            valus = row.setdefault(str(pred), [])
                            if obj not in valus:
                                valus.append(obj)

                    retn[iden] = row

            except Exception as e:
                raise q_exc.StoreOperationFailure(mesg=f'load failed: {e}') from e

        logger.debug('loaded %d of %d subjects of %s', len(retn), len(ids), clsuri)
        return retn

    def insert(self, triples, graph):
        with self.lock:
            self.stats['insert'] += 1
            try:
                g = self._getGraph(graph)
                for triple in triples:
                    g.add(triple)
            except Exception as e:
                raise q_exc.StoreOperationFailure(mesg=f'insert failed: {e}', graph=str(graph)) from e

    def delete(self, triples, graph):
        with self.lock:
            self.stats['delete'] += 1
            try:
                g = self._getGraph(graph)
                for triple in triples:
                    g.remove(triple)
            except Exception as e:
                raise q_exc.StoreOperationFailure(mesg=f'delete failed: {e}', graph=str(graph)) from e

    def size(self, graph=None):
        with self.lock:
            return sum(len(g) for g in self._getGraphs(graph))
