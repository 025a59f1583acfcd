'''
Helpers for working with rdflib terms.
'''
from rdflib import BNode, Literal, URIRef
from rdflib.namespace import RDF

import quadra.exc as q_exc
import quadra.lib.const as q_const

rdftype = RDF.type

def uri(valu):
    '''
    Coerce a value into an rdflib URIRef.

    Args:
        valu (str|URIRef): The value to coerce.

    Returns:
        URIRef: The uri term.
    '''
    if isinstance(valu, URIRef):
        return valu

    if isinstance(valu, str):
        valu = valu.strip()
        if not valu:
            raise q_exc.BadTypeValu(mesg='An empty string is not a valid uri.', valu=valu)
        return URIRef(valu)

    raise q_exc.BadTypeValu(mesg=f'Cannot convert {type(valu).__name__} to a uri.', valu=repr(valu))

def isuri(valu):
    return isinstance(valu, URIRef)

def isbnode(valu):
    return isinstance(valu, BNode)

def isliteral(valu):
    return isinstance(valu, Literal)

def unwrap(term):
    '''
    Convert a literal term to a native python value.

    Uri and blank node terms are returned as-is.
    '''
    if isinstance(term, Literal):
        valu = term.toPython()
        if isinstance(valu, Literal):
            return str(valu)
        return valu
    return term

def lang(term):
    '''
    Return the language tag of a literal term or the no-language bucket name.
    '''
    if isinstance(term, Literal) and term.language:
        return term.language
    return q_const.NOLANG

def ntriples(term):
    '''
    Render a term in N-Triples syntax.
    '''
    return term.n3()

def nquad(subj, pred, obj, graph):
    '''
    Render a single N-Quads line (with trailing newline).
    '''
    return ' '.join((ntriples(subj), ntriples(pred), ntriples(obj), ntriples(graph), '.\n'))

def join(base, *parts):
    '''
    Join a namespace base and path parts into a uri.
    '''
    text = str(base)
    for part in parts:
        if not text.endswith(('/', '#')):
            text += '/'
        text += str(part).strip('/')
    return URIRef(text)

def langpart(terms):
    '''
    Partition a list of terms into a language to values dictionary.

    Untagged literals and uri terms are placed in the no-language bucket.
    '''
    retn = {}
    for term in terms:
        retn.setdefault(lang(term), []).append(term)
    return retn
