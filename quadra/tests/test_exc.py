import pickle

import quadra.exc as q_exc

import quadra.tests.utils as q_t_utils

class ExcTest(q_t_utils.QuadTest):

    def test_basic(self):
        e = q_exc.QuadErr(mesg='words', foo='bar')
        self.eq(e.get('foo'), 'bar')
        self.eq("QuadErr: foo='bar' mesg='words'", str(e))
        e.set('hehe', 1234)
        e.set('foo', 'words')
        self.eq("QuadErr: foo='words' hehe=1234 mesg='words'", str(e))

        e.setdefault('defv', 1)
        self.eq("QuadErr: defv=1 foo='words' hehe=1234 mesg='words'", str(e))

        e.setdefault('defv', 2)
        self.eq("QuadErr: defv=1 foo='words' hehe=1234 mesg='words'", str(e))

        e.update({'foo': 'newp', 'ham': 'egg'})
        self.eq(e.items(), {'mesg': 'words', 'foo': 'newp', 'hehe': 1234, 'defv': 1, 'ham': 'egg'})

        self.eq(e.errname, 'QuadErr')

        e2 = q_exc.BadTypeValu(mesg='haha')
        self.eq(e2.errname, 'BadTypeValu')

    def test_exc_validation_errors(self):
        errors = {'name': {'existence': 'name is required'}}
        e = q_exc.ValidationFailure(mesg='Object is not valid. Check errors.', errors=errors)
        self.eq(e.get('errors'), errors)
        self.isinstance(e, q_exc.QuadErr)

    def test_exc_nosuchattr(self):
        e = q_exc.NoSuchAttr.init('person', 'newp')
        self.eq(e.get('name'), 'newp')
        self.eq(e.get('klass'), 'person')
        self.eq(e.get('mesg'), 'No attribute named newp on person.')

    def test_exc_pickle(self):
        e = q_exc.IllegalMutation(mesg='newp', iden='http://quadra.local/x')
        e2 = pickle.loads(pickle.dumps(e))
        self.eq(e2.get('iden'), 'http://quadra.local/x')
        self.eq(str(e), str(e2))
