from rdflib import URIRef

import quadra.exc as q_exc

import quadra.lib.naming as q_naming

import quadra.tests.utils as q_t_utils

class NamingTest(q_t_utils.QuadTest):

    def test_naming_attr(self):

        with self.getTestStore():

            pers = q_t_utils.Person(name='Ada  Lovelace\n')
            self.eq(q_naming.genid(pers), URIRef('http://quadra.local/person/Ada%20Lovelace'))

            schema = q_t_utils.Person.getSchema()
            self.eq(q_naming.idFromUnique(schema, 'name', 'Ada Lovelace'),
                    URIRef('http://quadra.local/person/Ada%20Lovelace'))

            # characters which are not uri safe are quoted
            self.eq(q_naming.idFromUnique(schema, 'name', 'a/b?c'),
                    URIRef('http://quadra.local/person/a%2Fb%3Fc'))

            with self.raises(q_exc.IDGenerationFailure) as cm:
                q_naming.genid(q_t_utils.Person())
            self.eq(cm.exception.get('name'), 'name')

            with self.raises(q_exc.IDGenerationFailure):
                q_naming.idFromUnique(schema, 'name', '   ')

    def test_naming_id(self):

        with self.getTestStore():

            note = q_t_utils.Note(text='hehe')
            with self.raises(q_exc.IDGenerationFailure) as cm:
                q_naming.genid(note)
            self.eq(cm.exception.get('mesg'), 'id must be set if configured in namewith')

    def test_naming_func(self):

        with self.getTestStore():

            tag0 = q_t_utils.Tag(label='foo')
            tag1 = q_t_utils.Tag(label=' foo ')
            tag2 = q_t_utils.Tag(label='bar')

            iden0 = q_naming.genid(tag0)
            self.true(iden0.startswith('http://quadra.local/tag/'))
            self.eq(iden0, q_naming.genid(q_t_utils.Tag(label='foo')))
            self.eq(iden0, q_naming.genid(tag1))
            self.ne(iden0, q_naming.genid(tag2))

            with self.raises(q_exc.IDGenerationFailure) as cm:
                q_naming.genid(q_t_utils.Tag())
            self.isin('label', cm.exception.get('mesg'))

    def test_naming_func_errors(self):

        with self.getTestStore():

            def badnamer(res):
                raise ValueError('haha')

            class Bad(q_t_utils.q_resource.Resource):
                modeldef = {
                    'name': 'test:badnamer',
                    'namewith': badnamer,
                    'attrs': (('size', ('int', {}), {}),),
                }

            with self.raises(q_exc.IDGenerationFailure) as cm:
                q_naming.genid(Bad(size=10))
            self.eq(cm.exception.get('mesg'), 'Problem with custom id generation: haha')

            class Empty(q_t_utils.q_resource.Resource):
                modeldef = {
                    'name': 'test:emptynamer',
                    'namewith': lambda res: None,
                    'attrs': (('size', ('int', {}), {}),),
                }

            self.raises(q_exc.IDGenerationFailure, q_naming.genid, Empty(size=10))
