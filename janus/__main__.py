from janus.main import main

main()
