import os
import copy
import logging
import collections.abc as c_abc

import yaml
import fastjsonschema

import quadra.exc as q_exc
import quadra.common as q_common

from fastjsonschema.exceptions import JsonSchemaValueException

logger = logging.getLogger(__name__)

# Cache of validator functions
_JsValidators = {}  # type: ignore

def getJsSchema(confdefs):
    '''
    Generate a JSON Schema for a set of mapper configuration definitions.

    Args:
        confdefs (dict): A JSON Schema dictionary of properties for the object.

    Notes:
        The generated schema does not allow additional properties to be set.

    Returns:
        dict: A complete JSON schema.
    '''
    return {
        '$schema': 'http://json-schema.org/draft-07/schema#',
        'additionalProperties': False,
        'properties': dict(confdefs),
        'type': 'object'
    }

def getJsValidator(schema, use_default=True):
    '''
    Get a fastjsonschema callable.

    Args:
        schema (dict): A JSON Schema object.
        use_default (bool): Whether to insert "default" key arguments into the validated data structure.

    Returns:
        callable: A callable function that can be used to validate data against the json schema.
    '''
    if schema.get('$schema') is None:
        schema['$schema'] = 'http://json-schema.org/draft-07/schema#'

    key = q_common.guid((schema, use_default))
    func = _JsValidators.get(key)
    if func:
        return func

    func = fastjsonschema.compile(schema, use_default=use_default)

    def wrap(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except JsonSchemaValueException as e:
            raise q_exc.SchemaViolation(mesg=e.message, name=e.name) from e

    _JsValidators[key] = wrap
    return wrap

def make_envar_name(key, prefix=None):
    '''
    Convert a colon delimited string into an uppercase, underscore delimited string.

    Args:
        key (str): Config key to convert.
        prefix (str): Optional string prefix to prepend the the config key.

    Returns:
        str: The string to lookup against a envar.
    '''
    nk = key.replace(':', '_')
    if prefix:
        nk = f'{prefix}_{nk}'
    return nk.upper()

class Config(c_abc.MutableMapping):
    '''
    Mapper configuration helper based on JSON Schema.

    Args:
        schema (dict): The JSON Schema (draft v7) which to validate
                       configuration data against.
        conf (dict): Optional, a set of configuration data to preload.
        envar_prefixes (list): Optional, a list of prefix strings used when collecting
                               configuration data from environment variables.

    Notes:
        Default values are not loaded into the configuration data until
        the ``reqConfValid()`` method is called.
    '''
    def __init__(self, schema, conf=None, envar_prefixes=None):

        if conf is None:
            conf = {}

        if envar_prefixes is None:
            envar_prefixes = ('', )

        self.conf = {}
        self.json_schema = schema
        self.envar_prefixes = envar_prefixes
        self.validator = getJsValidator(self.json_schema)

        self._prop_validators = {}
        for name, info in self.json_schema.get('properties').items():
            prop_schema = {'$schema': 'http://json-schema.org/draft-07/schema#'}
            prop_schema.update(info)
            self._prop_validators[name] = getJsValidator(prop_schema)

        # Copy the data in so that it is validated.
        for name, valu in conf.items():
            self[name] = valu

    @classmethod
    def getConfFromDefs(cls, confdefs, conf=None, envar_prefixes=None):
        '''
        Get a Config object from a dictionary of configuration definitions.

        Returns:
            Config: A Config object.
        '''
        schema = getJsSchema(confdefs)
        return cls(schema, conf=conf, envar_prefixes=envar_prefixes)

    def setConfFromFile(self, path):
        '''
        Set the opts for a conf object from YAML file path.

        Values which are already set are not replaced.
        '''
        item = q_common.yamlload(path)
        if item is None:
            return

        for name, valu in item.items():
            self.setdefault(name, valu)

    def setConfFromEnvs(self):
        '''
        Set configuration options from environment variables.

        Notes:
            Environment variables are resolved from configuration options after doing the following transform:

            - Replace ``:`` characters with ``_``.
            - Add a config provided prefix, if set.
            - Uppercase the string.
            - Resolve the environment variable
            - If the environment variable is set, set the config value to the results of ``yaml.safe_load()``
              on the value.

        Examples:

            For the configuration value ``cache:immutable``, the environment variable is resolved as
            ``CACHE_IMMUTABLE``. With the prefix ``quadra``, it is resolved as ``QUADRA_CACHE_IMMUTABLE``.

        Returns:
            dict: Returns a dictionary of values which were set from enviroment variables.
        '''
        updates = {}
        for prefix in self.envar_prefixes:
            for name, envar in self.getEnvarMapping(prefix=prefix).items():

                envv = os.getenv(envar)
                if envv is None:
                    continue

                envv = yaml.safe_load(envv)

                curv = self.get(name, q_common.novalu)
                if curv is not q_common.novalu:
                    if curv != envv:
                        logger.warning(f'Config from envar [{envar}] skipped due to already being set!')
                    continue

                self.setdefault(name, envv)
                logger.debug(f'Set config valu from envar: [{envar}]')
                updates[name] = envv

        return updates

    def getEnvarMapping(self, prefix=None):
        '''
        Get a mapping of config values to envars.
        '''
        if prefix is None:
            prefix = self.envar_prefixes[0]

        return {name: make_envar_name(name, prefix=prefix) for name in self.json_schema.get('properties', {})}

    def reqConfValid(self):
        '''
        Validate that the loaded configuration data is valid according to the schema.

        Notes:
            Validation inserts default values for any options which are not set.

        Returns:
            None: This returns nothing.
        '''
        try:
            self.validator(self.conf)
        except q_exc.SchemaViolation as e:
            logger.exception('Configuration is invalid.')
            raise q_exc.BadConfValu(mesg=f'Invalid configuration found: [{str(e)}]') from None

    def reqConfValu(self, key):
        '''
        Get a configuration value.  If that value is not present in the schema
        or is not set, then raise an exception.

        Args:
            key (str): The key to require.

        Returns:
            The requested value.
        '''
        if key not in self.json_schema.get('properties', {}):
            raise q_exc.BadArg(mesg='Required key is not present in the configuration schema.',
                               key=key)

        if key not in self.conf:
            raise q_exc.NeedConfValu(mesg='Required key is not present in configuration data.',
                                     key=key)

        return self.conf.get(key)

    def reqKeyValid(self, key, value):
        '''
        Test if a key is valid for the provided schema it is associated with.

        Raises:
            BadArg: If the key has no associated schema.
            BadConfValu: If the data is not schema valid.
        '''
        validator = self._prop_validators.get(key)
        if validator is None:
            raise q_exc.BadArg(mesg=f'Key {key} is not a valid config', key=key)
        try:
            validator(value)
        except q_exc.SchemaViolation as e:
            raise q_exc.BadConfValu(mesg=f'Invalid config for {key}, {e.get("mesg")}', name=key, value=value) from None

    def asDict(self):
        '''
        Get a copy of configuration data.

        Returns:
            dict: A copy of the configuration data.
        '''
        return copy.deepcopy(self.conf)

    def __repr__(self):
        info = [self.__class__.__module__ + '.' + self.__class__.__name__]
        info.append(f'at {hex(id(self))}')
        info.append(f'conf={self.conf}')
        return '<{}>'.format(' '.join(info))

    # ABC methods
    def __len__(self):
        return len(self.conf)

    def __iter__(self):
        return self.conf.__iter__()

    def __delitem__(self, key):
        return self.conf.__delitem__(key)

    def __setitem__(self, key, value):
        self.reqKeyValid(key, value)
        return self.conf.__setitem__(key, value)

    def __getitem__(self, item):
        return self.conf.__getitem__(item)
