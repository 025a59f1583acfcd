import warnings

from rdflib import BNode, Literal, URIRef

import quadra.exc as q_exc

import quadra.lib.store as q_store
import quadra.lib.terms as q_terms

import quadra.tests.utils as q_t_utils

rdftype = q_terms.rdftype

clsuri = URIRef('http://quadra.local/person')
visi = URIRef('http://quadra.local/person/visi')
pname = URIRef('http://quadra.local/name')
pemail = URIRef('http://quadra.local/email')

graph0 = URIRef('http://quadra.local/graph/0')
graph1 = URIRef('http://quadra.local/graph/1')

class StoreTest(q_t_utils.QuadTest):

    def test_store_ram_allgraphs(self):

        store = q_store.RamStore()
        store.insert([(visi, rdftype, clsuri)], graph0)
        store.insert([(visi, pname, Literal('visi'))], graph1)

        with warnings.catch_warnings():
            warnings.simplefilter('error', DeprecationWarning)
            self.true(store.exists(clsuri, visi))
            self.eq(store.subjects(clsuri), [visi])

    def test_store_ram(self):

        store = q_store.RamStore()

        self.false(store.exists(clsuri, visi, graph=graph0))

        store.insert([
            (visi, rdftype, clsuri),
            (visi, pname, Literal('visi')),
            (visi, pemail, Literal('visi@vertex.link')),
            (visi, pemail, Literal('v@vertex.link')),
        ], graph0)

        self.true(store.exists(clsuri, visi, graph=graph0))
        self.true(store.exists(clsuri, visi))
        self.false(store.exists(clsuri, visi, graph=graph1))

        self.eq(store.subjects(clsuri), [visi])
        self.eq(store.subjects(clsuri, graph=graph1), [])

        self.eq(store.match(clsuri, {pname: Literal('visi')}), [visi])
        self.eq(store.match(clsuri, {pname: Literal('newp')}), [])
        self.eq(store.match(clsuri, {pname: Literal('visi'), pemail: Literal('v@vertex.link')}, graph=graph0), [visi])

        rows = store.load([visi, URIRef('http://quadra.local/person/newp')], clsuri, include=[pemail], graph=graph0)
        self.eq(list(rows.keys()), [visi])
        self.eq(list(rows[visi].keys()), [str(pemail)])
        self.sorteq(rows[visi][str(pemail)], [Literal('visi@vertex.link'), Literal('v@vertex.link')])

        rows = store.load([visi], clsuri)
        self.sorteq(rows[visi].keys(), [str(rdftype), str(pname), str(pemail)])

        # an empty include loads existence only
        rows = store.load([visi], clsuri, include=[])
        self.eq(rows, {visi: {}})

        # wildcard deletes
        store.delete([(visi, pemail, None)], graph0)
        rows = store.load([visi], clsuri, include=[pemail])
        self.eq(rows, {visi: {}})

        self.eq(store.size(), 2)
        store.delete([(visi, None, None)], graph0)
        self.eq(store.size(), 0)
        self.false(store.exists(clsuri, visi))

        self.eq(store.stats['insert'], 1)
        self.eq(store.stats['delete'], 2)
        self.isin('RamStore', repr(store))

    def test_store_bnodes(self):

        store = q_store.RamStore()

        bnode = BNode()
        store.insert([(bnode, pname, Literal('part'))], graph0)
        store.insert([(bnode, pname, Literal('other'))], graph1)

        store.delete([(bnode, None, None)], graph0)
        self.eq(store.size(graph0), 0)
        self.eq(store.size(graph1), 1)

    def test_store_failure(self):

        store = q_store.RamStore()

        with self.raises(q_exc.StoreOperationFailure):
            store.insert([('newp',)], graph0)
