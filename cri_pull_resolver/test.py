import base64
import json
import os
import unittest
from unittest import mock

from aiohttp import test_utils

from cri_pull_resolver import reference
from cri_pull_resolver.config import CriConfig, Runtime, config_from_dict, load_config
from cri_pull_resolver.errors import (
    ImageStatusError,
    InvalidAuthEncoding,
    InvalidReference,
    ImageNotFound,
    MalformedMirrorEndpoint,
    UnknownRuntimeHandler,
)
from cri_pull_resolver.labels import (
    IMAGE_LABEL_KEY,
    IMAGE_LABEL_VALUE,
    PINNED_IMAGE_LABEL_KEY,
    PINNED_IMAGE_LABEL_VALUE,
    image_labels,
)
from cri_pull_resolver.resolve import (
    AuthConfig,
    PodSandboxConfig,
    RUNTIME_HANDLER_ANNOTATION,
    default_scheme,
    encrypted_images_pull_opts,
    parse_auth,
    registry_endpoints,
    snapshotter_from_pod_sandbox_config,
)
from cri_pull_resolver.service import ImageService
from cri_pull_resolver.status import get_user_from_image, to_cri_image, to_cri_image_info
from cri_pull_resolver.store import Image, ImageStore, MemoryImageStore
from cri_pull_resolver.webapp import app


test_dir = os.path.join(os.path.dirname(__file__), 'test/')

PAUSE_DIGEST = 'sha256:7031c1b283388d2c2e09b57badb803c05ebed362dc88d84b480cc47f72a21097'
IMAGE_ID = 'sha256:' + 'a' * 64
PAUSE_ID = 'sha256:' + 'b' * 64
IMAGE_SPEC = {
    'architecture': 'amd64',
    'os': 'linux',
    'config': {'User': '1000:1000', 'Env': ['PATH=/usr/bin']},
    'rootfs': {'type': 'layers', 'diff_ids': ['sha256:' + 'c' * 64]},
}


def _testfile(path):
    """Return location of text fixture file."""
    return os.path.join(test_dir, path)


def _b64(value):
    return base64.b64encode(value.encode()).decode()


class DefaultSchemeTest(unittest.TestCase):

    def test_default_scheme(self):
        for host, expected in [
            ('localhost', 'http'),
            ('localhost:8080', 'http'),
            ('127.0.0.1', 'http'),
            ('127.0.0.1:8080', 'http'),
            ('::1', 'http'),
            ('[::1]:8080', 'http'),
            ('[::1]', 'http'),
            ('remote', 'https'),
            ('remote:8080', 'https'),
            ('8.8.8.8', 'https'),
            ('8.8.8.8:8080', 'https'),
            ('[not-an-ip', 'https'),
            ('[::1', 'https'),
        ]:
            with self.subTest(host=host):
                self.assertEqual(expected, default_scheme(host))


class RegistryEndpointsTest(unittest.TestCase):

    def test_registry_endpoints(self):
        for desc, mirrors, expected in [
            (
                'no mirror configured',
                {'registry-1.io': ['https://registry-1.io', 'https://registry-2.io']},
                ['https://registry-3.io'],
            ),
            (
                'mirror configured',
                {'registry-3.io': ['https://registry-1.io', 'https://registry-2.io']},
                ['https://registry-1.io', 'https://registry-2.io', 'https://registry-3.io'],
            ),
            (
                'wildcard mirror configured',
                {'*': ['https://registry-1.io', 'https://registry-2.io']},
                ['https://registry-1.io', 'https://registry-2.io', 'https://registry-3.io'],
            ),
            (
                'host takes precedence over wildcard',
                {'*': ['https://registry-1.io'], 'registry-3.io': ['https://registry-2.io']},
                ['https://registry-2.io', 'https://registry-3.io'],
            ),
            (
                'default endpoint in list with http',
                {'registry-3.io': ['https://registry-1.io', 'https://registry-2.io', 'http://registry-3.io']},
                ['https://registry-1.io', 'https://registry-2.io', 'http://registry-3.io'],
            ),
            (
                'default endpoint in list with https',
                {'registry-3.io': ['https://registry-1.io', 'https://registry-2.io', 'https://registry-3.io']},
                ['https://registry-1.io', 'https://registry-2.io', 'https://registry-3.io'],
            ),
            (
                'default endpoint in list with path',
                {'registry-3.io': ['https://registry-1.io', 'https://registry-2.io', 'https://registry-3.io/path']},
                ['https://registry-1.io', 'https://registry-2.io', 'https://registry-3.io/path'],
            ),
            (
                'endpoints without scheme',
                {'registry-3.io': ['https://registry-3.io', 'registry-1.io', '127.0.0.1:1234']},
                ['https://registry-3.io', 'https://registry-1.io', 'http://127.0.0.1:1234'],
            ),
        ]:
            with self.subTest(desc):
                self.assertEqual(expected, registry_endpoints('registry-3.io', mirrors))

    def test_no_mirrors(self):
        self.assertEqual(['https://registry-3.io'], registry_endpoints('registry-3.io', {}))

    def test_docker_hub_uses_registry_host(self):
        self.assertEqual(['https://registry-1.docker.io'], registry_endpoints('docker.io', {}))

    def test_localhost_registry_uses_http(self):
        self.assertEqual(['http://localhost:5000'], registry_endpoints('localhost:5000', {}))

    def test_configured_mirrors_not_mutated(self):
        mirrors = {'registry-3.io': ['registry-1.io']}
        registry_endpoints('registry-3.io', mirrors)
        self.assertEqual({'registry-3.io': ['registry-1.io']}, mirrors)

    def test_malformed_mirror(self):
        for endpoint in ['http://[::1', 'registry-1.io:port', '', 'https://']:
            with self.subTest(endpoint=endpoint):
                with self.assertRaises(MalformedMirrorEndpoint):
                    registry_endpoints('registry-3.io', {'registry-3.io': [endpoint]})


class ParseAuthTest(unittest.TestCase):

    user = 'username'
    passwd = 'password'

    def test_parse_auth(self):
        for desc, auth, host, expected in [
            ('nil auth config', None, '', ('', '')),
            ('empty auth for anonymous registry', AuthConfig(), '', ('', '')),
            ('identity token', AuthConfig(identity_token='abcd'), '', ('', 'abcd')),
            ('username and password', AuthConfig(username=self.user, password=self.passwd), '',
             (self.user, self.passwd)),
            ('auth blob', AuthConfig(auth=_b64(f'{self.user}:{self.passwd}')), '', (self.user, self.passwd)),
            ('auth blob with colon in password', AuthConfig(auth=_b64('user:pa:ss')), '', ('user', 'pa:ss')),
            ('server address does not match',
             AuthConfig(username=self.user, password=self.passwd, server_address='https://registry-1.io'),
             'registry-2.io', ('', '')),
            ('server address matches',
             AuthConfig(username=self.user, password=self.passwd, server_address='https://registry-1.io'),
             'registry-1.io', (self.user, self.passwd)),
            ('server address without scheme',
             AuthConfig(username=self.user, password=self.passwd, server_address='registry-1.io'),
             'registry-1.io', (self.user, self.passwd)),
            ('server address not specified',
             AuthConfig(username=self.user, password=self.passwd), 'registry-1.io', (self.user, self.passwd)),
            ('identity token scoped to another server',
             AuthConfig(identity_token='abcd', server_address='registry-1.io'), 'registry-2.io', ('', '')),
            ('identity token wins over username',
             AuthConfig(identity_token='abcd', username=self.user, password=self.passwd), '', ('', 'abcd')),
            ('auth blob wins over username',
             AuthConfig(auth=_b64('blob:secret'), username=self.user, password=self.passwd), '',
             ('blob', 'secret')),
        ]:
            with self.subTest(desc):
                self.assertEqual(expected, tuple(parse_auth(auth, host)))

    def test_invalid_auth(self):
        for blob in [_b64(f'{self.user}@{self.passwd}'), '!!not-base64!!', 'düser:pass']:
            with self.subTest(blob=blob):
                with self.assertRaises(InvalidAuthEncoding):
                    parse_auth(AuthConfig(auth=blob), '')


class SnapshotterTest(unittest.TestCase):

    runtimes = {'existing-runtime': Runtime(type='io.containerd.runc.v2', snapshotter='devmapper'),
                'plain-runtime': Runtime(type='io.containerd.runc.v2')}

    def _select(self, sandbox_config):
        return snapshotter_from_pod_sandbox_config(sandbox_config, self.runtimes, 'native', image_ref='test-image')

    def test_default_snapshotter(self):
        for desc, sandbox_config in [
            ('nil sandbox config', None),
            ('nil annotations', PodSandboxConfig()),
            ('empty annotations', PodSandboxConfig(annotations={})),
            ('no runtime handler annotation', PodSandboxConfig(annotations={'other': 'value'})),
            ('runtime without snapshotter', PodSandboxConfig(annotations={RUNTIME_HANDLER_ANNOTATION: 'plain-runtime'})),
        ]:
            with self.subTest(desc):
                self.assertEqual('native', self._select(sandbox_config))

    def test_runtime_not_found(self):
        with self.assertRaises(UnknownRuntimeHandler):
            self._select(PodSandboxConfig(annotations={RUNTIME_HANDLER_ANNOTATION: 'runtime-not-exists'}))

    def test_runtime_snapshotter(self):
        self.assertEqual(
            'devmapper',
            self._select(PodSandboxConfig(annotations={RUNTIME_HANDLER_ANNOTATION: 'existing-runtime'})),
        )


class EncryptedImagePullOptsTest(unittest.TestCase):

    def test_node_key_model(self):
        opts = encrypted_images_pull_opts('node')
        self.assertEqual(1, len(opts))
        self.assertEqual('decrypt', opts[0].kind)

    def test_no_key_model(self):
        for key_model in ['', 'unknown', None]:
            with self.subTest(key_model=key_model):
                self.assertEqual([], encrypted_images_pull_opts(key_model))


class ImageLabelsTest(unittest.TestCase):

    base = {IMAGE_LABEL_KEY: IMAGE_LABEL_VALUE}
    pinned = {IMAGE_LABEL_KEY: IMAGE_LABEL_VALUE, PINNED_IMAGE_LABEL_KEY: PINNED_IMAGE_LABEL_VALUE}

    def test_image_labels(self):
        for desc, sandbox_image, name, expected in [
            ('sandbox image', 'registry.k8s.io/pause:3.9', 'registry.k8s.io/pause:3.9', self.pinned),
            ('sandbox image without tag', 'registry.k8s.io/pause', 'registry.k8s.io/pause:latest', self.pinned),
            ('sandbox image with tag and digest', f'registry.k8s.io/pause:3.9@{PAUSE_DIGEST}',
             f'registry.k8s.io/pause@{PAUSE_DIGEST}', self.pinned),
            ('sandbox image with digest', f'registry.k8s.io/pause@{PAUSE_DIGEST}',
             f'registry.k8s.io/pause@{PAUSE_DIGEST}', self.pinned),
            ('familiar docker hub name', 'busybox', 'docker.io/library/busybox:latest', self.pinned),
            ('other image', 'registry.k8s.io/pause:3.9', 'registry.k8s.io/random:latest', self.base),
            ('sandbox image with digest, pulled by tag', f'registry.k8s.io/pause:3.9@{PAUSE_DIGEST}',
             'registry.k8s.io/pause:3.9', self.pinned),
            ('sandbox image by tag, pulled with tag and digest', 'registry.k8s.io/pause:3.9',
             f'registry.k8s.io/pause:3.9@{PAUSE_DIGEST}', self.pinned),
            ('different digests', f'registry.k8s.io/pause:3.9@{PAUSE_DIGEST}',
             'registry.k8s.io/pause:3.9@sha256:' + 'e' * 64, self.base),
            ('other tag', 'registry.k8s.io/pause:3.9', 'registry.k8s.io/pause:3.8', self.base),
            ('unparsable sandbox image', 'Not A Reference', 'registry.k8s.io/pause:3.9', self.base),
        ]:
            with self.subTest(desc):
                self.assertEqual(expected, image_labels(sandbox_image, name))


class ReferenceTest(unittest.TestCase):

    def test_normalize(self):
        for ref, expected in [
            ('busybox', 'docker.io/library/busybox:latest'),
            ('library/busybox:1.36', 'docker.io/library/busybox:1.36'),
            ('index.docker.io/foo/bar', 'docker.io/foo/bar:latest'),
            ('localhost:5000/foo', 'localhost:5000/foo:latest'),
            (f'registry.k8s.io/pause:3.9@{PAUSE_DIGEST}', f'registry.k8s.io/pause@{PAUSE_DIGEST}'),
        ]:
            with self.subTest(ref=ref):
                self.assertEqual(expected, reference.normalize(ref))

    def test_parse_components(self):
        parsed = reference.parse_docker_ref(f'localhost:5000/team/app:v1@{PAUSE_DIGEST}')
        self.assertEqual(('localhost:5000', 'team/app', 'v1', PAUSE_DIGEST), tuple(parsed))

    def test_invalid(self):
        for ref in ['', 'Busybox', 'busybox:', 'busybox@sha256:abc', 'registry.io/a b']:
            with self.subTest(ref=ref):
                with self.assertRaises(InvalidReference):
                    reference.parse_docker_ref(ref)


class ImageStatusTest(unittest.TestCase):

    def _image(self, **kwargs):
        fields = {
            'id': IMAGE_ID,
            'references': ('docker.io/library/busybox:1.36', f'docker.io/library/busybox@{PAUSE_DIGEST}'),
            'size': 1234,
            'image_spec': IMAGE_SPEC,
            'chain_id': 'sha256:' + 'd' * 64,
        }
        fields.update(kwargs)
        return Image(**fields)

    def test_to_cri_image(self):
        image = to_cri_image(self._image())
        self.assertEqual(IMAGE_ID, image.id)
        self.assertEqual(['docker.io/library/busybox:1.36'], image.repo_tags)
        self.assertEqual([f'docker.io/library/busybox@{PAUSE_DIGEST}'], image.repo_digests)
        self.assertEqual(1234, image.size)
        self.assertEqual(1000, image.uid)
        self.assertEqual('', image.username)
        self.assertFalse(image.pinned)

    def test_tag_and_digest_reference(self):
        image = to_cri_image(self._image(references=(f'docker.io/library/busybox:1.36@{PAUSE_DIGEST}', 'not a ref')))
        self.assertEqual(['docker.io/library/busybox:1.36'], image.repo_tags)
        self.assertEqual([f'docker.io/library/busybox@{PAUSE_DIGEST}'], image.repo_digests)

    def test_image_id_reference_skipped(self):
        image = to_cri_image(self._image(references=(PAUSE_ID, 'registry.k8s.io/pause:3.9')))
        self.assertEqual(['registry.k8s.io/pause:3.9'], image.repo_tags)
        self.assertEqual([], image.repo_digests)

    def test_get_user_from_image(self):
        for user, expected in [
            ('', (None, '')),
            ('0', (0, '')),
            ('1000', (1000, '')),
            ('1000:1000', (1000, '')),
            ('nobody', (None, 'nobody')),
            ('nobody:nogroup', (None, 'nobody')),
        ]:
            with self.subTest(user=user):
                self.assertEqual(expected, get_user_from_image(user))

    def test_username_from_image(self):
        image = to_cri_image(self._image(image_spec={'config': {'User': 'www-data:www-data'}}))
        self.assertIsNone(image.uid)
        self.assertEqual('www-data', image.username)

    def test_info_not_verbose(self):
        self.assertIsNone(to_cri_image_info(self._image(), False))

    def test_info_verbose(self):
        info = to_cri_image_info(self._image(), True)
        self.assertEqual(
            {'chainID': 'sha256:' + 'd' * 64, 'imageSpec': IMAGE_SPEC},
            json.loads(info['info']),
        )

    def test_info_marshal_failure(self):
        info = to_cri_image_info(self._image(image_spec={'config': {}, 'bad': object()}), True)
        self.assertIn('not JSON serializable', info['info'])


class ConfigTest(unittest.TestCase):

    def test_load_config(self):
        config = load_config(_testfile('config.yaml'))
        self.assertEqual('registry.k8s.io/pause:3.9', config.sandbox_image)
        self.assertEqual('native', config.snapshotter)
        self.assertEqual('node', config.key_model)
        self.assertEqual(('https://mirror.example.io',), config.mirrors['*'])
        self.assertEqual(('https://registry-1.io', 'registry-2.io'), config.mirrors['registry-3.io'])
        self.assertEqual(Runtime('io.containerd.kata.v2', 'devmapper'), config.runtimes['kata'])
        self.assertEqual(Runtime('io.containerd.runc.v2', ''), config.runtimes['runc'])

    def test_defaults(self):
        for config in [load_config(None), config_from_dict(None), config_from_dict({})]:
            with self.subTest(config=config):
                self.assertEqual('overlayfs', config.snapshotter)
                self.assertEqual('registry.k8s.io/pause:3.9', config.sandbox_image)
                self.assertEqual('', config.key_model)
                self.assertEqual({}, dict(config.mirrors))
                self.assertEqual({}, dict(config.runtimes))


class MemoryImageStoreTest(unittest.TestCase):

    def test_retag_moves_reference(self):
        store = MemoryImageStore([
            Image(id=IMAGE_ID, references=('busybox:1.36', 'busybox:stable')),
        ])
        store.add(Image(id=PAUSE_ID, references=('docker.io/library/busybox:1.36',)))

        self.assertEqual(PAUSE_ID, store.resolve('docker.io/library/busybox:1.36'))
        self.assertEqual(('busybox:stable',), store.get(IMAGE_ID).references)
        self.assertEqual([], to_cri_image(store.get(PAUSE_ID)).repo_digests)
        self.assertEqual(['docker.io/library/busybox:stable'], to_cri_image(store.get(IMAGE_ID)).repo_tags)

    def test_image_id_not_indexed_as_reference(self):
        store = MemoryImageStore([Image(id=PAUSE_ID, references=(PAUSE_ID, 'registry.k8s.io/pause:3.9'))])
        self.assertEqual(PAUSE_ID, store.resolve('registry.k8s.io/pause:3.9'))
        with self.assertRaises(ImageNotFound):
            store.resolve('docker.io/library/sha256:' + 'b' * 64)

    def test_update_keeps_pinned_label_pinned(self):
        store = MemoryImageStore([Image(id=PAUSE_ID, references=('registry.k8s.io/pause:3.9',))])
        store.update(PAUSE_ID, {PINNED_IMAGE_LABEL_KEY: PINNED_IMAGE_LABEL_VALUE}, True)
        image = store.update(PAUSE_ID, {IMAGE_LABEL_KEY: IMAGE_LABEL_VALUE}, False)
        self.assertTrue(image.pinned)


class ImageServiceTest(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.store = MemoryImageStore([
            Image(id=IMAGE_ID, references=('docker.io/library/busybox:1.36',), size=10,
                  image_spec=IMAGE_SPEC, chain_id='sha256:' + 'd' * 64),
        ])
        self.plans = []

        async def executor(plan):
            self.plans.append(plan)
            try:
                # content already present, only the reference is new
                return self.store.get(PAUSE_ID)
            except ImageNotFound:
                return self.store.add(Image(id=PAUSE_ID, references=(plan.image,), size=5, image_spec={}))

        self.service = ImageService(load_config(_testfile('config.yaml')), self.store, executor)

    def test_status_by_reference(self):
        for ref in ['busybox:1.36', 'docker.io/library/busybox:1.36', IMAGE_ID]:
            with self.subTest(ref=ref):
                response = self.service.image_status(ref)
                self.assertEqual(IMAGE_ID, response.image.id)
                self.assertIsNone(response.info)

    def test_status_verbose(self):
        response = self.service.image_status('busybox:1.36', verbose=True)
        self.assertEqual('sha256:' + 'd' * 64, json.loads(response.info['info'])['chainID'])

    def test_status_not_found(self):
        with mock.patch('cri_pull_resolver.service.trace.get_current_span') as get_span:
            response = self.service.image_status('busybox:missing')
        self.assertIsNone(response.image)
        self.assertIsNone(response.info)
        self.assertTrue(get_span.return_value.add_event.called)

    def test_status_records_image_id(self):
        with mock.patch('cri_pull_resolver.service.trace.get_current_span') as get_span:
            self.service.image_status('busybox:1.36')
        get_span.return_value.set_attribute.assert_called_once_with('image.id', IMAGE_ID)

    def test_status_store_failure(self):
        store = mock.Mock(spec=ImageStore)
        store.resolve.side_effect = ImageNotFound('missing')
        store.get.side_effect = RuntimeError('store is gone')
        with self.assertRaises(ImageStatusError):
            ImageService(CriConfig(), store).image_status('busybox:1.36')

    def test_plan_pull(self):
        plan = self.service.plan_pull(
            'registry-3.io/app',
            auth=AuthConfig(username='user', password='pass', server_address='registry-1.io'),
            sandbox_config=PodSandboxConfig(annotations={RUNTIME_HANDLER_ANNOTATION: 'kata'}),
        )
        self.assertEqual('registry-3.io/app:latest', plan.image)
        self.assertEqual('registry-3.io', plan.host)
        self.assertEqual('devmapper', plan.snapshotter)
        self.assertEqual(1, len(plan.unpack_opts))
        self.assertFalse(plan.pinned)
        self.assertEqual(
            ['https://registry-1.io', 'https://registry-2.io', 'https://registry-3.io'],
            plan.endpoints(),
        )
        self.assertEqual(('user', 'pass'), tuple(plan.credentials('registry-1.io')))
        self.assertEqual(('', ''), tuple(plan.credentials('registry-2.io')))

    async def test_pull_sandbox_image_is_pinned(self):
        image_id = await self.service.pull_image('registry.k8s.io/pause:3.9')
        self.assertEqual(PAUSE_ID, image_id)
        self.assertEqual('native', self.plans[0].snapshotter)

        stored = self.store.get(PAUSE_ID)
        self.assertTrue(stored.pinned)
        self.assertEqual(PINNED_IMAGE_LABEL_VALUE, stored.labels[PINNED_IMAGE_LABEL_KEY])
        self.assertTrue(self.service.image_status('registry.k8s.io/pause:3.9').image.pinned)

    async def test_repull_under_other_name_stays_pinned(self):
        await self.service.pull_image('registry.k8s.io/pause:3.9')
        await self.service.pull_image('mirror.example.io/pause:3.9')

        stored = self.store.get(PAUSE_ID)
        self.assertTrue(stored.pinned)
        self.assertEqual(PINNED_IMAGE_LABEL_VALUE, stored.labels[PINNED_IMAGE_LABEL_KEY])
        self.assertEqual(
            ('registry.k8s.io/pause:3.9', 'mirror.example.io/pause:3.9'),
            stored.references,
        )

    async def test_pull_pinned_by_tag_when_sandbox_has_digest(self):
        config = load_config(_testfile('config.yaml'))._replace(
            sandbox_image=f'registry.k8s.io/pause:3.9@{PAUSE_DIGEST}')
        plan = ImageService(config, self.store).plan_pull('registry.k8s.io/pause:3.9')
        self.assertTrue(plan.pinned)

    async def test_pull_unknown_runtime(self):
        with self.assertRaises(UnknownRuntimeHandler):
            await self.service.pull_image(
                'busybox', sandbox_config=PodSandboxConfig(annotations={RUNTIME_HANDLER_ANNOTATION: 'missing'}),
            )
        self.assertEqual([], self.plans)


class WebAppTest(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.store = MemoryImageStore([
            Image(id=IMAGE_ID, references=('docker.io/library/busybox:1.36',), size=10,
                  image_spec=IMAGE_SPEC, chain_id='sha256:' + 'd' * 64),
        ])

        async def executor(plan):
            return self.store.add(Image(id=PAUSE_ID, references=(plan.image,)))

        self._app = app(load_config(_testfile('config.yaml')), store=self.store, executor=executor)
        self._client = test_utils.TestClient(test_utils.TestServer(self._app))
        await self._client.start_server()

    async def asyncTearDown(self):
        await self._client.close()

    async def _post(self, path, payload):
        resp = await self._client.post(path, json=payload)
        body = await resp.json()
        return resp.status, body

    async def test_image_status(self):
        status, body = await self._post('/images/status', {'image': 'busybox:1.36', 'verbose': True})
        self.assertEqual(200, status)
        self.assertEqual(IMAGE_ID, body['image']['id'])
        self.assertEqual(['docker.io/library/busybox:1.36'], body['image']['repo_tags'])
        self.assertEqual(1000, body['image']['uid'])
        self.assertEqual(IMAGE_SPEC, json.loads(body['info']['info'])['imageSpec'])

    async def test_image_status_not_found(self):
        status, body = await self._post('/images/status', {'image': 'busybox:missing'})
        self.assertEqual(200, status)
        self.assertEqual({'image': None, 'info': None}, body)

    async def test_pull_plan(self):
        status, body = await self._post('/images/plan', {
            'image': 'busybox',
            'auth': {'auth': _b64('user:pass'), 'serverAddress': 'docker.io'},
            'sandbox_config': {'annotations': {RUNTIME_HANDLER_ANNOTATION: 'kata'}},
        })
        self.assertEqual(200, status)
        self.assertDictEqual(
            {
                'image': 'docker.io/library/busybox:latest',
                'snapshotter': 'devmapper',
                'unpack_opts': [{'kind': 'decrypt', 'params': {'key_model': 'node'}}],
                'labels': {IMAGE_LABEL_KEY: IMAGE_LABEL_VALUE},
                'endpoints': ['http://127.0.0.1:5000', 'https://registry-1.docker.io'],
                'auth': {'username': 'user', 'has_secret': True},
            },
            body,
        )

    async def test_pull_plan_errors(self):
        for payload, expected_status in [
            ({'image': 'busybox', 'sandbox_config': {'annotations': {RUNTIME_HANDLER_ANNOTATION: 'missing'}}}, 400),
            ({'image': 'busybox', 'auth': {'auth': _b64('no-separator')}}, 400),
            ({'image': 'Not A Reference'}, 400),
            ({'image': 'busybox', 'auth': {'auth': 'düser:pass'}}, 400),
            ({'image': 'busybox', 'auth': {'auth': 123}}, 400),
            ({'image': 'busybox', 'auth': {'username': 'user', 'serverAddress': 5}}, 400),
            ({'image': 'busybox', 'sandbox_config': {'annotations': {RUNTIME_HANDLER_ANNOTATION: ['kata']}}}, 400),
            ({}, 400),
        ]:
            with self.subTest(payload=payload):
                status, body = await self._post('/images/plan', payload)
                self.assertEqual(expected_status, status)
                self.assertIn('error', body)

    async def test_image_status_verbose_must_be_boolean(self):
        status, body = await self._post('/images/status', {'image': 'busybox:1.36', 'verbose': 'false'})
        self.assertEqual(400, status)
        self.assertEqual({'error': 'verbose must be a boolean'}, body)

    async def test_pull_image(self):
        status, body = await self._post('/images/pull', {'image': 'registry.k8s.io/pause:3.9'})
        self.assertEqual(200, status)
        self.assertEqual({'image_ref': PAUSE_ID}, body)
        self.assertTrue(self.store.get(PAUSE_ID).pinned)

    async def test_pull_image_without_executor(self):
        client = test_utils.TestClient(test_utils.TestServer(app(CriConfig())))
        await client.start_server()
        try:
            resp = await client.post('/images/pull', json={'image': 'busybox'})
            self.assertEqual(501, resp.status)
        finally:
            await client.close()


if __name__ == '__main__':
    unittest.main()
