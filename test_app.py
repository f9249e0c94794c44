#!/usr/bin/env python3
"""
Storefront API 冒烟测试脚本
服务启动后运行: python test_app.py [BASE_URL]
"""

import os
import sys
import time
from typing import Any, Callable, Dict, Optional

import requests

BASE_URL = os.getenv("API_URL", "http://localhost:5000")


class AppTester:
    """按顺序调用各接口并汇总结果"""

    def __init__(self, base_url: str = BASE_URL):
        self.base_url = base_url.rstrip("/")
        self.session = requests.Session()
        self.results = []
        self.product: Optional[Dict[str, Any]] = None
        self.order_id: Optional[int] = None

    def log_result(self, test_name: str, success: bool, message: str = ""):
        status = "✅ PASS" if success else "❌ FAIL"
        print(f"{status} {test_name}" + (f" - {message}" if message else ""))
        self.results.append({"test": test_name, "success": success, "message": message})

    def call(self, method: str, path: str, **kwargs) -> requests.Response:
        return self.session.request(method, f"{self.base_url}{path}", timeout=10, **kwargs)

    def wait_for_service(self, max_wait: int = 30) -> bool:
        """轮询 /api/health 直到服务可用"""
        print(f"⏳ 等待服务启动 (最多 {max_wait} 秒)...")
        deadline = time.time() + max_wait
        while time.time() < deadline:
            try:
                if self.call("GET", "/api/health").status_code == 200:
                    return True
            except requests.RequestException:
                pass
            time.sleep(1)
        print(f"❌ 服务未响应: {self.base_url}")
        return False

    def check(self, name: str, expected_status: int, method: str, path: str,
              verify: Optional[Callable[[Dict[str, Any]], str]] = None, **kwargs) -> bool:
        """发送请求，校验状态码；verify 返回要打印的说明"""
        try:
            response = self.call(method, path, **kwargs)
            body = response.json()
        except (requests.RequestException, ValueError) as e:
            self.log_result(name, False, f"异常: {e}")
            return False

        if response.status_code != expected_status:
            self.log_result(name, False, f"期望 {expected_status}, 实际 {response.status_code}: {body.get('message')}")
            return False
        self.log_result(name, True, verify(body) if verify else str(expected_status))
        return True

    # ---------- 各项检查 ----------

    def _remember_product(self, body: Dict[str, Any]) -> str:
        in_stock = [p for p in body["data"] if p["stock"] > 0]
        self.product = in_stock[0] if in_stock else None
        return f"共 {len(body['data'])} 个商品"

    def _remember_order(self, body: Dict[str, Any]) -> str:
        self.order_id = body["data"]["id"]
        return f"{body['data']['order_number']} total={body['data']['total_amount']}"

    def run_all_tests(self) -> Dict[str, Any]:
        print(f"🚀 Storefront API 冒烟测试: {self.base_url}")
        print("=" * 60)
        if not self.wait_for_service():
            return {"success": False, "results": self.results}

        self.check("健康检查", 200, "GET", "/api/health",
                   lambda b: f"database={b['database'].get('type')} ({b['database'].get('status')})")
        self.check("商品列表", 200, "GET", "/api/products", self._remember_product)
        self.check("分类不存在", 404, "GET", "/api/products/category/__none__")
        self.check("缺少 items 的订单", 400, "POST", "/api/orders", json={"customer_email": "invalid"})

        if self.product is not None:
            product_id = self.product["id"]
            self.check("创建订单", 201, "POST", "/api/orders", self._remember_order, json={
                "customer_email": "smoke@example.com",
                "items": [{"product_id": product_id, "quantity": 1}],
            })
            self.check("库存不足", 409, "POST", "/api/orders", json={
                "customer_email": "smoke@example.com",
                "items": [{"product_id": product_id, "quantity": 10 ** 6}],
            })
        if self.order_id is not None:
            self.check("订单详情", 200, "GET", f"/api/orders/{self.order_id}",
                       lambda b: f"{len(b['data']['order_items'])} 行明细")

        passed = sum(1 for r in self.results if r["success"])
        print("=" * 60)
        print(f"📊 {passed}/{len(self.results)} 通过")
        return {"success": passed == len(self.results), "results": self.results}


def main():
    base_url = sys.argv[1] if len(sys.argv) > 1 else BASE_URL
    report = AppTester(base_url).run_all_tests()
    sys.exit(0 if report["success"] else 1)


if __name__ == "__main__":
    main()
