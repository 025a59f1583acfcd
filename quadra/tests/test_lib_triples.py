import io

from rdflib import BNode, Literal, URIRef

import quadra.lib.terms as q_terms
import quadra.lib.triples as q_triples

import quadra.tests.utils as q_t_utils

rdftype = q_terms.rdftype

visi = URIRef('http://quadra.local/person/visi')
pname = URIRef('http://quadra.local/name')
page = URIRef('http://quadra.local/age')
pemail = URIRef('http://quadra.local/email')

class TriplesTest(q_t_utils.QuadTest):

    def test_triples_new(self):

        with self.getTestStore():

            pers = q_t_utils.Person(name='visi', email=['visi@vertex.link', 'v@vertex.link'])
            inserts, deletes = q_triples.getUpdateTriples(pers)

            self.eq(deletes, [])
            self.sorteq(inserts, [
                (visi, rdftype, URIRef('http://quadra.local/person')),
                (visi, pname, Literal('visi')),
                (visi, pemail, Literal('visi@vertex.link')),
                (visi, pemail, Literal('v@vertex.link')),
            ])

    def test_triples_update(self):

        with self.getTestStore():

            pers = q_t_utils.Person(name='visi', age=20)
            pers.save()

            # the previous value is known from the saved state
            pers.set('age', 21)
            inserts, deletes = q_triples.getUpdateTriples(pers)
            self.eq(inserts, [(visi, page, Literal(21))])
            self.eq(deletes, [(visi, page, Literal(20))])

            # a persistent resource with an unloaded attribute deletes every object
            pers = q_t_utils.Person.find('visi').first()
            pers.set('age', 22)
            inserts, deletes = q_triples.getUpdateTriples(pers)
            self.eq(inserts, [(visi, page, Literal(22))])
            self.eq(deletes, [(visi, page, None)])

            # loaded attributes delete the raw stored terms
            pers = q_t_utils.Person.find('visi').include('age').first()
            pers.set('age', None)
            inserts, deletes = q_triples.getUpdateTriples(pers)
            self.eq(inserts, [])
            self.eq(deletes, [(visi, page, Literal(20))])

    def test_triples_langs(self):

        with self.getTestStore():

            note = q_t_utils.Note(id='http://quadra.local/note/0', text='hehe',
                                  title={'en': ['hello'], 'fr': ['bonjour'], '@none': ['hi']})

            terms = q_triples.getAttrTerms(note, 'title', note.peek('title'))
            self.sorteq(terms, [
                Literal('hello', lang='en'),
                Literal('bonjour', lang='fr'),
                Literal('hi'),
            ])

    def test_triples_delete(self):

        with self.getTestStore():

            bnode = BNode()
            note = q_t_utils.Note(id='http://quadra.local/note/0', text='hehe', parts=[bnode])

            graphdels, bnodedels = q_triples.getDeleteTriples(note)

            subj = URIRef('http://quadra.local/note/0')
            self.isin((subj, rdftype, URIRef('http://quadra.local/note')), graphdels)
            self.isin((subj, URIRef('http://quadra.local/text'), None), graphdels)
            self.isin((subj, URIRef('http://quadra.local/parts'), None), graphdels)
            self.eq(bnodedels, {'parts': [(bnode, None, None)]})

    def test_triples_nquads(self):

        with self.getTestStore():

            pers = q_t_utils.Person(name='visi')
            inserts, deletes = q_triples.getUpdateTriples(pers)

            fd = io.StringIO()
            fd.write(''.join(q_triples.getNquadLines(inserts, 'http://quadra.local/person')))

            lines = fd.getvalue().splitlines()
            self.len(2, lines)
            self.isin('<http://quadra.local/person/visi> <http://www.w3.org/1999/02/22-rdf-syntax-ns#type> '
                      '<http://quadra.local/person> <http://quadra.local/person> .', lines)
            self.isin('<http://quadra.local/person/visi> <http://quadra.local/name> "visi" '
                      '<http://quadra.local/person> .', lines)
