# Copyright 2026 Vijaykumar Singh <singhvjd@gmail.com>
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.

"""JavaScript category files shared by the test modules."""

from pathlib import Path
from typing import Dict

SERVICE_SOURCE = """"use strict";

const internals = {};

internals.controller = (server) => {
  const checkEldPermission = async (request, h) => {
    return true;
  };

  const listDevices = async (request) => {
    return [];
  };

  return {
    serviceName: "EldService",
    checkEldPermission,
    listDevices,
  };
};

module.exports = internals;
"""

CONTROLLER_SOURCE = """const internals = {};

internals.controller = (server) => {
  const services = server.plugins["core-services"];
  const eld = services.EldService;

  const getStatus = async (request, h) => {
    const allowed = await eld.checkEldPermission(request);
    return h.response({ allowed });
  };

  return {
    controllerName: "EldController",
    getStatus,
  };
};

module.exports = internals;
"""

ROUTES_SOURCE = """const internals = {};

internals.applyRoutes = (server) => {
  const controllers = server.plugins["core-controller"];

  server.route({
    method: "GET",
    path: "/eld/status",
    handler: controllers.EldController.getStatus,
  });
};

module.exports = internals;
"""

CONFIG_SOURCE = """const internals = {};

internals.controller = (server) => ({
  configurationName: "AppConfig",
  port: 8080,
  hosts: ["a", "b"],
});

module.exports = internals;
"""

UTILITY_SOURCE = """const internals = {};

internals.controller = (server) => {
  const helpers = {
    formatDate: (value) => value.toISOString(),
    padLeft: (value) => String(value).padStart(2, "0"),
  };

  const normalize = (input) => input.trim();

  return {
    UtilityName: "DateUtility",
    ...helpers,
    normalize,
  };
};

module.exports = internals;
"""

MODEL_SOURCE = """const internals = {};

internals.Model = (server) => {
  const Driver = server.db.define("Driver", {
    name: { type: "string" },
  });

  return Driver;
};

module.exports = internals;
"""

MALFORMED_SERVICE_SOURCE = """const internals = {};

internals.controller = (server) => {
  return {
    serviceName: "BrokenService",
    fix: () => {
"""

PLAIN_SERVICE_SOURCE = """module.exports = {
  serviceName: "PlainService",
};
"""

DEFAULT_WORKSPACE: Dict[str, str] = {
    "src/services/eld-service.js": SERVICE_SOURCE,
    "src/controllers/eld-controller.js": CONTROLLER_SOURCE,
    "src/config/app-config.js": CONFIG_SOURCE,
    "src/utils/date-function.js": UTILITY_SOURCE,
    "src/models/driver-model.js": MODEL_SOURCE,
    "src/routes/eld-routes.js": ROUTES_SOURCE,
}


def line_of(source: str, needle: str) -> int:
    """1-based line of the first occurrence of needle."""
    index = source.index(needle)
    return source.count("\n", 0, index) + 1


def write_workspace(root: Path, files: Dict[str, str]) -> Path:
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root
