import json
import logging

import aiohttp.web

from cri_pull_resolver import process
from cri_pull_resolver.errors import ResolverError


logger = logging.getLogger(__name__)


async def image_status_handler(request: aiohttp.web.Request) -> aiohttp.web.Response:
    request_payload = await request.json()
    image = process.image_from_payload(request_payload)
    verbose = process.verbose_from_payload(request_payload)

    response = request.app['service'].image_status(image, verbose=verbose)
    return aiohttp.web.json_response(process.status_response(response))


async def pull_plan_handler(request: aiohttp.web.Request) -> aiohttp.web.Response:
    request_payload = await request.json()
    plan = request.app['service'].plan_pull(
        process.image_from_payload(request_payload),
        auth=process.auth_from_payload(request_payload.get('auth')),
        sandbox_config=process.sandbox_config_from_payload(request_payload.get('sandbox_config')),
    )
    return aiohttp.web.json_response(process.plan_response(plan))


async def pull_image_handler(request: aiohttp.web.Request) -> aiohttp.web.Response:
    service = request.app['service']
    if service.executor is None:
        raise aiohttp.web.HTTPNotImplemented(
            text=json.dumps(process.error_response('no pull executor configured')),
            content_type='application/json',
        )

    request_payload = await request.json()
    image_id = await service.pull_image(
        process.image_from_payload(request_payload),
        auth=process.auth_from_payload(request_payload.get('auth')),
        sandbox_config=process.sandbox_config_from_payload(request_payload.get('sandbox_config')),
    )
    return aiohttp.web.json_response({'image_ref': image_id})


@aiohttp.web.middleware
async def error_middleware(request: aiohttp.web.Request, handler) -> aiohttp.web.Response:
    try:
        response = await handler(request)
    except aiohttp.web.HTTPException as exc:
        raise exc
    except ResolverError as exc:
        logger.warning('Request to %s failed: %s', request.path, exc.msg)
        response = aiohttp.web.json_response(process.error_response(exc.msg), status=exc.status)
    except json.JSONDecodeError as exc:
        response = aiohttp.web.json_response(process.error_response(f'invalid JSON body: {exc}'), status=400)
    except AssertionError as exc:
        logger.exception('Request validation failed.')
        response = aiohttp.web.json_response(process.error_response(str(exc)), status=400)
    if not response.prepared:
        response.headers['SERVER'] = 'cri-pull-resolver'
    return response


__all__ = ['image_status_handler', 'pull_plan_handler', 'pull_image_handler', 'error_middleware']
