"""Web 接口：REST 路由与 uvicorn 服务通道"""
