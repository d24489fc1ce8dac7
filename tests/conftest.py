from pathlib import Path
from tempfile import TemporaryDirectory

import pytest

USER_SERVICE = """package com.example.service;

import org.springframework.stereotype.Service;

@Service
public class UserService {

    public String findUser(Long id) {
        return "User " + id;
    }
}
"""

PAY_CONFIG = """package com.example.pay;

import org.springframework.context.annotation.Bean;
import org.springframework.context.annotation.Configuration;
import org.springframework.context.annotation.Primary;

@Configuration
public class PayConfig {

    @Bean
    public Pay alipay() {
        return new AliPay();
    }

    @Bean
    @Primary
    public Pay wechat() {
        return new WechatPay();
    }
}
"""

# Injection points: userService on lines 14-15, pay on lines 17-18 (1-indexed)
USER_CONTROLLER = """package com.example.web;

import com.example.pay.Pay;
import com.example.service.UserService;
import lombok.NonNull;
import lombok.RequiredArgsConstructor;
import org.springframework.beans.factory.annotation.Autowired;
import org.springframework.web.bind.annotation.RestController;

@RestController
@RequiredArgsConstructor(onConstructor = @__({@Autowired}))
public class UserController {

    @NonNull
    private final UserService userService;

    @Autowired
    private Pay pay;
}
"""

PLAIN = """package com.example.util;

public class Strings {
    private Strings() {}
}
"""

GENERATED = """package com.example.generated;

@Service
public class GeneratedService {}
"""

CONTROLLER_PATH = "src/main/java/com/example/web/UserController.java"


def write_project(root: Path) -> Path:
    files = {
        "src/main/java/com/example/service/UserService.java": USER_SERVICE,
        "src/main/java/com/example/pay/PayConfig.java": PAY_CONFIG,
        CONTROLLER_PATH: USER_CONTROLLER,
        "src/main/java/com/example/util/Strings.java": PLAIN,
        "target/generated-sources/GeneratedService.java": GENERATED,
    }
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def java_project():
    """A small Spring project in a temporary directory."""
    with TemporaryDirectory() as tmpdir:
        yield write_project(Path(tmpdir))
